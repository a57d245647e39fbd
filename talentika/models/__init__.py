"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Every table the generic backend client can address is exported here.
"""

from .database import db
from .user import User, ActivationToken, PasswordResetToken
from .article import Article
from .course import InterestCategory, Course
from .community import CommunityChallenge, CommunityEvent, UserChallenge
from .opportunity import ScrapedContent
from .learning import LearningCategory, LearningContent, LearningProgress
from .quiz import QuizCategory, Quiz, QuizAttempt, QuizLeaderboard
from .mentorship import Mentor, MentorshipSession
from .payment import (
    SubscriptionPackage, VoucherCode, VoucherUsage, PaymentTransaction, UserSubscription
)
from .gamification import UserXP, UserStreak, Achievement
from .assessment import AssessmentResult
from .audit_log import AuditLog

__all__ = [
    'db',
    'User',
    'ActivationToken',
    'PasswordResetToken',
    'Article',
    'InterestCategory',
    'Course',
    'CommunityChallenge',
    'CommunityEvent',
    'UserChallenge',
    'ScrapedContent',
    'LearningCategory',
    'LearningContent',
    'LearningProgress',
    'QuizCategory',
    'Quiz',
    'QuizAttempt',
    'QuizLeaderboard',
    'Mentor',
    'MentorshipSession',
    'SubscriptionPackage',
    'VoucherCode',
    'VoucherUsage',
    'PaymentTransaction',
    'UserSubscription',
    'UserXP',
    'UserStreak',
    'Achievement',
    'AssessmentResult',
    'AuditLog',
]
