"""
Learning Catalog Models

LearningContent rows are scored by the adaptive learning feed; LearningProgress
tracks one user's progress on one content item.
"""

from datetime import datetime
from .database import db, SerializerMixin


class LearningCategory(SerializerMixin, db.Model):
    __tablename__ = 'learning_categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    color = db.Column(db.String(20))
    parent_id = db.Column(db.Integer, db.ForeignKey('learning_categories.id'))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class LearningContent(SerializerMixin, db.Model):
    __tablename__ = 'learning_content'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    content_type = db.Column(db.String(30), nullable=False, default='article')  # course, video, article, podcast
    content_url = db.Column(db.String(1000))
    thumbnail_url = db.Column(db.String(1000))
    category_id = db.Column(db.Integer, db.ForeignKey('learning_categories.id'))
    difficulty_level = db.Column(db.String(20), default='beginner')
    duration_minutes = db.Column(db.Integer, default=0)
    tags = db.Column(db.JSON, default=list)
    target_personas = db.Column(db.JSON, default=list)
    priority_score = db.Column(db.Integer, default=0)
    average_rating = db.Column(db.Float, default=0)
    total_enrollments = db.Column(db.Integer, default=0)
    is_featured = db.Column(db.Boolean, default=False)
    is_premium = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    external_source = db.Column(db.String(100))
    external_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('LearningCategory', lazy=True)

    def to_dict(self):
        data = super().to_dict()
        data['category_name'] = self.category.name if self.category else None
        return data


class LearningProgress(SerializerMixin, db.Model):
    __tablename__ = 'learning_progress'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    content_id = db.Column(db.Integer, db.ForeignKey('learning_content.id'), nullable=False)
    status = db.Column(db.String(20), default='not_started')  # not_started, in_progress, completed
    progress_percentage = db.Column(db.Integer, default=0)
    time_spent_minutes = db.Column(db.Integer, default=0)
    rating = db.Column(db.Integer)
    feedback = db.Column(db.Text)
    last_accessed_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'content_id', name='unique_user_content_progress'),
    )
