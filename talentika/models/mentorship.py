"""
Mentorship Models
"""

from datetime import datetime
from .database import db, SerializerMixin


class Mentor(SerializerMixin, db.Model):
    __tablename__ = 'mentors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    bio = db.Column(db.Text)
    avatar_url = db.Column(db.String(1000))
    expertise_areas = db.Column(db.JSON, default=list)
    experience_years = db.Column(db.Integer, default=0)
    rating = db.Column(db.Float, default=0)
    total_sessions = db.Column(db.Integer, default=0)
    hourly_rate = db.Column(db.Float, default=0)
    is_available = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MentorshipSession(SerializerMixin, db.Model):
    __tablename__ = 'mentorship_sessions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    mentor_id = db.Column(db.Integer, db.ForeignKey('mentors.id'), nullable=False)
    session_type = db.Column(db.String(30), nullable=False, default='consultation')
    session_date = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, default=60)
    status = db.Column(db.String(20), default='scheduled')  # scheduled, completed, cancelled
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    mentor = db.relationship('Mentor', lazy=True)

    def to_dict(self):
        data = super().to_dict()
        data['mentor'] = self.mentor.to_dict() if self.mentor else None
        return data
