"""
User Models

This module contains the User, ActivationToken, and PasswordResetToken models.
The user row also carries the profile data the dashboard needs (interests,
subscription status) so feeds can be personalised without extra lookups.
"""

from datetime import datetime, timedelta
from .database import db, SerializerMixin
from .utils import generate_user_id, generate_activation_token, generate_password_reset_token


class User(SerializerMixin, db.Model):
    """User model for authentication and profile management"""
    __tablename__ = 'users'
    __serialize_exclude__ = ('password_hash',)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(12), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), default='inactive')  # inactive, active, suspended
    role = db.Column(db.String(20), default='user')  # user, admin
    full_name = db.Column(db.String(120))
    phone = db.Column(db.String(32))
    avatar_url = db.Column(db.String(500))
    interests = db.Column(db.JSON, default=list)
    subscription_status = db.Column(db.String(20), default='inactive')
    subscription_type = db.Column(db.String(40))
    subscription_end_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    activation_tokens = db.relationship('ActivationToken', backref='user', lazy=True)
    password_reset_tokens = db.relationship('PasswordResetToken', backref='user', lazy=True)

    def __init__(self, email, password_hash, full_name=None):
        """Initialize a new user with comprehensive security validation"""
        # Import validators here to avoid circular imports
        from ..utils.validators import validate_email, validate_password_hash

        email_validation = validate_email(email)
        if not email_validation.is_valid:
            raise ValueError(email_validation.error_message)

        hash_validation = validate_password_hash(password_hash)
        if not hash_validation.is_valid:
            raise ValueError(hash_validation.error_message)

        self.email = email_validation.sanitized_value
        self.password_hash = hash_validation.sanitized_value
        self.user_id = generate_user_id()
        self.full_name = full_name
        self.interests = []

        # Inactive until email verification
        self.status = 'inactive'
        self.role = 'user'
        self.subscription_status = 'inactive'

    def is_active(self):
        """Check if user account is active"""
        return self.status == 'active'

    def is_admin(self):
        return self.role == 'admin'

    def has_active_subscription(self):
        """Active status and, when an end date is known, not yet expired"""
        if self.subscription_status != 'active':
            return False
        if self.subscription_end_date and self.subscription_end_date < datetime.utcnow():
            return False
        return True

    def update_last_login(self):
        """Update the last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()


class ActivationToken(db.Model):
    """Activation token for user account activation"""
    __tablename__ = 'activation_tokens'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(255), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, default=False)

    def __init__(self, user_id, expires_in_hours=24):
        self.user_id = user_id
        self.token = generate_activation_token()
        self.expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)

    def is_valid(self):
        """Check if token is valid and not expired"""
        return not self.used and datetime.utcnow() < self.expires_at

    def mark_used(self):
        self.used = True
        db.session.commit()


class PasswordResetToken(db.Model):
    """Password reset token for password recovery"""
    __tablename__ = 'password_reset_tokens'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(255), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    used = db.Column(db.Boolean, default=False)

    def __init__(self, user_id, expires_in_hours=1):
        self.user_id = user_id
        self.token = generate_password_reset_token()
        self.expires_at = datetime.utcnow() + timedelta(hours=expires_in_hours)

    def is_valid(self):
        """Check if token is valid and not expired"""
        return not self.used and datetime.utcnow() < self.expires_at

    def mark_used(self):
        self.used = True
        db.session.commit()
