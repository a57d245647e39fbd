"""
Community Models

Challenges (XP-rewarding community tasks), who joined them, and events
(webinars, meetups).
"""

from datetime import datetime
from .database import db, SerializerMixin


class CommunityChallenge(SerializerMixin, db.Model):
    __tablename__ = 'community_challenges'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    challenge_type = db.Column(db.String(50), nullable=False, default='weekly')
    difficulty = db.Column(db.String(20), default='beginner')
    xp_reward = db.Column(db.Integer, default=100)
    max_participants = db.Column(db.Integer)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CommunityEvent(SerializerMixin, db.Model):
    __tablename__ = 'community_events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    event_type = db.Column(db.String(50), nullable=False, default='webinar')
    event_date = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, default=60)
    location = db.Column(db.String(255))
    max_participants = db.Column(db.Integer)
    current_participants = db.Column(db.Integer, default=0)
    is_premium_only = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserChallenge(SerializerMixin, db.Model):
    __tablename__ = 'user_challenges'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    challenge_id = db.Column(db.Integer, db.ForeignKey('community_challenges.id'), nullable=False)
    status = db.Column(db.String(20), default='joined')  # joined, submitted, completed
    score = db.Column(db.Integer, default=0)
    rank = db.Column(db.Integer)
    submission_data = db.Column(db.JSON)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    challenge = db.relationship('CommunityChallenge', lazy=True)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'challenge_id', name='unique_user_challenge'),
    )
