"""
Opportunity Model

Rows come either from the remote web-scraper function or from admins
(`is_manual`). Both feed the personalised opportunity board.
"""

from datetime import datetime
from .database import db, SerializerMixin


class ScrapedContent(SerializerMixin, db.Model):
    __tablename__ = 'scraped_content'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    url = db.Column(db.String(1000), nullable=False)
    source_website = db.Column(db.String(255), nullable=False, default='manual')
    category = db.Column(db.String(50), nullable=False)  # scholarship, job, competition, conference
    content_type = db.Column(db.String(50), nullable=False)
    tags = db.Column(db.JSON, default=list)
    location = db.Column(db.String(255))
    organizer = db.Column(db.String(255))
    deadline = db.Column(db.DateTime)
    registration_start_date = db.Column(db.DateTime)
    registration_end_date = db.Column(db.DateTime)
    requirements = db.Column(db.JSON, default=list)
    prize_info = db.Column(db.Text)
    poster_url = db.Column(db.String(1000))
    contact_info = db.Column(db.JSON)
    is_manual = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<ScrapedContent {self.category}: {self.title[:30]}>'
