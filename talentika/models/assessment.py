"""
Assessment Result Model

Stores the outcome of the RIASEC/talent assessment. The latest row per user is
the personalisation input of the feeds.
"""

from datetime import datetime
from .database import db, SerializerMixin


class AssessmentResult(SerializerMixin, db.Model):
    __tablename__ = 'assessment_results'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    assessment_type = db.Column(db.String(30), nullable=False, default='riasec')
    personality_type = db.Column(db.String(30))
    career_recommendations = db.Column(db.JSON, default=list)
    talent_areas = db.Column(db.JSON, default=list)
    interest_categories = db.Column(db.JSON, default=list)
    learning_style = db.Column(db.String(30))
    questions_answers = db.Column(db.JSON, default=dict)
    score_breakdown = db.Column(db.JSON)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @classmethod
    def latest_for_user(cls, user_id):
        return (
            cls.query
            .filter_by(user_id=user_id)
            .order_by(cls.completed_at.desc(), cls.id.desc())
            .first()
        )
