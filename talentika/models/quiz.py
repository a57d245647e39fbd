"""
Quiz Models

FLOW OVERVIEW
- QuizCategory groups quizzes for the explore page.
- Quiz holds one question with its correct answer and XP reward.
- QuizAttempt records each submitted answer.
- QuizLeaderboard keeps one aggregate row per user; ranks are recomputed after each attempt.
"""

from datetime import datetime
from .database import db, SerializerMixin


class QuizCategory(SerializerMixin, db.Model):
    __tablename__ = 'quiz_categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    icon = db.Column(db.String(50))
    color = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Quiz(SerializerMixin, db.Model):
    __tablename__ = 'quizzes'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    category_id = db.Column(db.Integer, db.ForeignKey('quiz_categories.id'))
    difficulty = db.Column(db.String(20), nullable=False, default='easy')
    question_type = db.Column(db.String(30), nullable=False, default='multiple_choice')
    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON)
    correct_answer = db.Column(db.String(500), nullable=False)
    explanation = db.Column(db.Text)
    clue_location = db.Column(db.String(255))
    media_url = db.Column(db.String(1000))
    points_reward = db.Column(db.Integer, default=10)
    is_isc_exclusive = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('QuizCategory', lazy=True)

    def to_public_dict(self):
        """Quiz as shown to a player: no answer, no explanation."""
        data = self.to_dict()
        data.pop('correct_answer', None)
        data.pop('explanation', None)
        return data


class QuizAttempt(SerializerMixin, db.Model):
    __tablename__ = 'quiz_attempts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quizzes.id'))
    user_answer = db.Column(db.String(500), nullable=False)
    is_correct = db.Column(db.Boolean, nullable=False)
    points_earned = db.Column(db.Integer, default=0)
    time_taken_seconds = db.Column(db.Integer, default=0)
    completed_at = db.Column(db.DateTime, default=datetime.utcnow)


class QuizLeaderboard(SerializerMixin, db.Model):
    __tablename__ = 'quiz_leaderboard'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    total_points = db.Column(db.Integer, default=0)
    total_quizzes_completed = db.Column(db.Integer, default=0)
    correct_answers = db.Column(db.Integer, default=0)
    current_streak = db.Column(db.Integer, default=0)
    longest_streak = db.Column(db.Integer, default=0)
    rank_position = db.Column(db.Integer)
    last_quiz_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', lazy=True)

    def to_dict(self):
        data = super().to_dict()
        if self.user:
            data['full_name'] = self.user.full_name
            data['avatar_url'] = self.user.avatar_url
        return data
