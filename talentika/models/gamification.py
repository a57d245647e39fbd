"""
Gamification Models

UserXP holds a user's XP and level; UserStreak one row per (user, streak_type);
Achievement one row per earned badge.
"""

from datetime import datetime
from .database import db, SerializerMixin


class UserXP(SerializerMixin, db.Model):
    __tablename__ = 'user_xp'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    current_xp = db.Column(db.Integer, default=0)
    current_level = db.Column(db.Integer, default=1)
    total_xp_earned = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserStreak(SerializerMixin, db.Model):
    __tablename__ = 'user_streaks'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    streak_type = db.Column(db.String(30), nullable=False)  # login, learning, achievement
    current_streak = db.Column(db.Integer, default=0)
    longest_streak = db.Column(db.Integer, default=0)
    last_activity_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'streak_type', name='unique_user_streak_type'),
    )


class Achievement(SerializerMixin, db.Model):
    """One badge earned by one user; `type` is a key of the achievement catalog."""
    __tablename__ = 'achievements'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    badge_icon = db.Column(db.String(20))
    earned_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'type', name='unique_user_achievement'),
    )
