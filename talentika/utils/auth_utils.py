"""
Authentication Utilities

This module contains utility functions for authentication, session access
control and outgoing mail.
"""

import hashlib
import logging
from functools import wraps
from flask import current_app, request, session, url_for
from flask_mail import Message
from ..models import db, User, ActivationToken, PasswordResetToken

logger = logging.getLogger(__name__)


def hash_password(password):
    """Hash a password using SHA-256"""
    return hashlib.sha256(password.encode()).hexdigest()


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    return hash_password(password) == password_hash


def create_user(email, password, full_name=None):
    """Create a new user with activation token"""
    password_hash = hash_password(password)

    user = User(email=email, password_hash=password_hash, full_name=full_name)
    db.session.add(user)
    db.session.flush()  # Get the user ID

    activation_token = ActivationToken(user.id)
    db.session.add(activation_token)

    db.session.commit()

    return user, activation_token


def authenticate_user(email, password):
    """Authenticate a user with email and password"""
    user = User.query.filter_by(email=email).first()

    # Only active users can authenticate
    if user and user.is_active() and verify_password(password, user.password_hash):
        return user

    return None


def get_user_by_token(token):
    """Get user by password reset token"""
    reset_token = PasswordResetToken.query.filter_by(token=token).first()

    if reset_token and reset_token.is_valid():
        return db.session.get(User, reset_token.user_id)

    return None


def current_user():
    """User bound to the session, or None"""
    if 'user_id' not in session:
        return None
    return User.query.filter_by(user_id=session['user_id']).first()


def _deny(message, status_code):
    from .error_handlers import json_error, render_error_page
    path = request.path or ''
    if path.startswith('/api') or path.startswith('/admin/api') or request.is_json:
        error_code = 'UNAUTHORIZED' if status_code == 401 else 'FORBIDDEN'
        return json_error(message, status_code, error_code)
    title = 'Authentication Required' if status_code == 401 else 'Access Denied'
    return render_error_page(title, message, status_code)


def login_required(f):
    """Decorator to require an active, logged in user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            return _deny('Unauthorized. Please log in.', 401)
        if not user.is_active():
            return _deny('This account has not been activated yet.', 403)
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require a logged in admin"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            return _deny('Unauthorized. Please log in.', 401)
        if not user.is_active() or not user.is_admin():
            current_app.logger.warning(f"Admin access denied for {user.email} on {request.path}")
            return _deny('Administrator access required.', 403)
        return f(*args, **kwargs)
    return decorated_function


def send_email(subject, recipients, body):
    """Send a plain text mail through Flask-Mail; returns False on failure"""
    try:
        mail = current_app.extensions['mail']
        msg = Message(subject, recipients=recipients, body=body)
        mail.send(msg)
        logger.info(f"Mail '{subject}' sent to {', '.join(recipients)}")
        return True
    except Exception as e:
        logger.error(f"Failed to send mail '{subject}': {e}")
        return False


def send_activation_email(user, activation_token):
    """Send activation email to user"""
    activation_url = url_for('auth.activate_account', token=activation_token.token, _external=True)
    return send_email(
        'Activate your Talentika account',
        [user.email],
        f'Welcome to Talentika!\n\nClick this link to activate your account: {activation_url}\n',
    )


def send_password_reset_email(user, reset_token):
    """Send password reset email to user"""
    reset_url = url_for('auth.reset_password', token=reset_token.token, _external=True)
    return send_email(
        'Reset your Talentika password',
        [user.email],
        f'Click this link to reset your password: {reset_url}\n\n'
        'If you did not request a reset, you can ignore this email.\n',
    )
