"""
Course Models

InterestCategory is the lookup table courses are joined to in the courses manager.
"""

from datetime import datetime
from .database import db, SerializerMixin


class InterestCategory(SerializerMixin, db.Model):
    __tablename__ = 'interest_categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    courses = db.relationship('Course', backref='category', lazy=True)


class Course(SerializerMixin, db.Model):
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey('interest_categories.id'))
    difficulty_level = db.Column(db.String(20), default='beginner')
    duration_hours = db.Column(db.Integer)
    price = db.Column(db.Float, default=0)
    thumbnail_url = db.Column(db.String(500))
    is_featured = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        data = super().to_dict()
        data['category_name'] = self.category.name if self.category else None
        return data
