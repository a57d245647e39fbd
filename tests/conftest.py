"""
Test configuration and shared fixtures for Talentika tests.

This file contains:
- Centralized test configuration
- Shared fixtures used across multiple test files
- Helpers for signing a test client in as a user or an admin
"""

import pytest
from datetime import datetime, timedelta
from talentika import create_app
from talentika.models import (
    db, User, ActivationToken, PasswordResetToken, SubscriptionPackage, VoucherCode
)
from talentika.utils.auth_utils import hash_password


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SECRET_KEY': 'test-secret-key',
    'MAIL_SERVER': 'localhost',
    'MAIL_PORT': 587,
    'MAIL_USE_TLS': False,
    'MAIL_USE_SSL': False,
    'MAIL_USERNAME': 'test@example.com',
    'MAIL_PASSWORD': 'test-password',
    'MAIL_DEFAULT_SENDER': 'test@example.com',
    'MAIL_SUPPRESS_SEND': True,
    'FUNCTIONS_URL': 'http://functions.test/v1',
    'STORAGE_URL': 'http://storage.test/v1',
    'BACKEND_SERVICE_KEY': 'service-key',
    'PAYMENT_CALLBACK_TOKEN': 'callback-token',
    'SCRAPING_CATEGORIES': ['SCHOLARSHIP', 'JOB'],
}


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(TEST_CONFIG)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


def make_user(db_session, email, status='active', role='user', full_name=None):
    user = User(email=email, password_hash=hash_password('TestPass123!'), full_name=full_name)
    user.status = status
    user.role = role
    db_session.add(user)
    db_session.commit()
    return user


def login(client, user):
    """Put the user into the client's session cookie"""
    with client.session_transaction() as sess:
        sess['user_id'] = user.user_id
        sess['user_email'] = user.email
    return client


@pytest.fixture
def test_user(db_session):
    """Create a test user for testing."""
    return make_user(db_session, 'test@example.com', full_name='Test Student')


@pytest.fixture
def test_user_inactive(db_session):
    """Create an inactive test user for testing."""
    return make_user(db_session, 'inactive@example.com', status='inactive')


@pytest.fixture
def admin_user(db_session):
    """Create an admin user for testing."""
    return make_user(db_session, 'admin@example.com', role='admin', full_name='Admin')


@pytest.fixture
def premium_user(db_session):
    """Active premium subscriber."""
    user = make_user(db_session, 'premium@example.com')
    user.subscription_status = 'active'
    user.subscription_type = 'premium'
    user.subscription_end_date = datetime.utcnow() + timedelta(days=30)
    db_session.commit()
    return user


@pytest.fixture
def user_client(client, test_user):
    return login(client, test_user)


@pytest.fixture
def admin_client(client, admin_user):
    return login(client, admin_user)


@pytest.fixture
def activation_token(db_session, test_user):
    """Create an activation token for testing."""
    token = ActivationToken(test_user.id)
    db_session.add(token)
    db_session.commit()
    return token


@pytest.fixture
def password_reset_token(db_session, test_user):
    """Create a password reset token for testing."""
    token = PasswordResetToken(test_user.id)
    db_session.add(token)
    db_session.commit()
    return token


@pytest.fixture
def expired_activation_token(db_session, test_user):
    """Create an expired activation token for testing."""
    token = ActivationToken(test_user.id)
    token.expires_at = datetime.utcnow() - timedelta(hours=2)
    db_session.add(token)
    db_session.commit()
    return token


@pytest.fixture
def premium_plan(db_session):
    plan = SubscriptionPackage(
        name='Premium',
        type='premium',
        price_monthly=100000,
        price_yearly=1000000,
        features=['Unlimited courses', 'Mentorship'],
    )
    db_session.add(plan)
    db_session.commit()
    return plan


@pytest.fixture
def percent_voucher(db_session):
    voucher = VoucherCode(
        code='HEMAT20',
        name='Hemat 20%',
        discount_type='percentage',
        discount_value=20,
        valid_from=datetime.utcnow() - timedelta(days=1),
        valid_until=datetime.utcnow() + timedelta(days=30),
        max_uses=10,
        current_uses=0,
    )
    db_session.add(voucher)
    db_session.commit()
    return voucher


@pytest.fixture
def login_as(client):
    """Sign the shared test client in as the given user"""
    def _login(user):
        return login(client, user)
    return _login
