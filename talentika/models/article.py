"""
Article Model

Career articles shown on the public site and edited through the articles manager.
"""

from datetime import datetime
from .database import db, SerializerMixin


class Article(SerializerMixin, db.Model):
    """Published or draft article"""
    __tablename__ = 'articles'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    content = db.Column(db.Text, nullable=False)
    excerpt = db.Column(db.Text)
    featured_image_url = db.Column(db.String(500))
    category = db.Column(db.String(50), default='karir')
    tags = db.Column(db.JSON, default=list)
    is_published = db.Column(db.Boolean, default=False)
    is_featured = db.Column(db.Boolean, default=False)
    view_count = db.Column(db.Integer, default=0)
    reading_time_minutes = db.Column(db.Integer, default=5)
    seo_title = db.Column(db.String(255))
    seo_description = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    published_at = db.Column(db.DateTime)

    def __repr__(self):
        return f'<Article {self.slug}>'

    @classmethod
    def get_published(cls, category=None):
        """Published articles, featured first then newest."""
        query = cls.query.filter_by(is_published=True)
        if category:
            query = query.filter_by(category=category)
        return query.order_by(cls.is_featured.desc(), cls.published_at.desc()).all()
