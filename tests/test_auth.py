import pytest
from unittest.mock import patch
from talentika.models import User, ActivationToken, PasswordResetToken
from talentika.utils.auth_utils import hash_password, verify_password, authenticate_user, create_user


class TestAuthFunctions:
    def test_hash_and_verify(self):
        hashed = hash_password('TestPass123!')
        assert len(hashed) == 64
        assert verify_password('TestPass123!', hashed)
        assert not verify_password('wrong', hashed)

    def test_authenticate_requires_active_account(self, test_user, test_user_inactive):
        assert authenticate_user('test@example.com', 'TestPass123!') is not None
        assert authenticate_user('inactive@example.com', 'TestPass123!') is None
        assert authenticate_user('test@example.com', 'nope') is None

    def test_create_user_issues_activation_token(self, db_session):
        user, token = create_user('new@example.com', 'TestPass123!', 'New Student')
        assert user.status == 'inactive'
        assert user.full_name == 'New Student'
        assert token.user_id == user.id
        assert token.is_valid()


class TestRegistration:
    def test_register_auto_activates_in_testing(self, client, db_session):
        response = client.post('/auth/register', json={
            'email': 'Student@Example.com', 'password': 'TestPass123!', 'full_name': 'Siti'
        })
        assert response.status_code == 201
        user = User.query.filter_by(email='student@example.com').first()
        assert user is not None
        assert user.is_active()
        assert user.full_name == 'Siti'

    def test_register_rejects_weak_password(self, client, db_session):
        response = client.post('/auth/register', json={'email': 'a@example.com', 'password': 'password'})
        assert response.status_code == 400

    def test_register_rejects_duplicate(self, client, test_user):
        response = client.post('/auth/register', json={'email': 'test@example.com', 'password': 'TestPass123!'})
        assert response.status_code == 409

    def test_register_requires_fields(self, client, db_session):
        response = client.post('/auth/register', json={})
        assert response.status_code == 400

    def test_register_sends_activation_mail_outside_testing(self, app, client, db_session):
        app.config['TESTING'] = False
        with patch('talentika.routes.auth.send_activation_email', return_value=True) as send:
            response = client.post('/auth/register', json={'email': 'mail@example.com', 'password': 'TestPass123!'})
        assert response.status_code == 201
        assert send.called
        assert 'activation-sent' in response.json['redirect_url']


class TestActivation:
    def test_activate_account(self, client, db_session, test_user_inactive):
        token = ActivationToken(test_user_inactive.id)
        db_session.add(token)
        db_session.commit()

        response = client.get(f'/auth/activate/{token.token}', follow_redirects=True)
        assert response.status_code == 200
        assert b'Account activated successfully' in response.data
        db_session.refresh(test_user_inactive)
        assert test_user_inactive.is_active()

    def test_expired_token(self, client, expired_activation_token):
        response = client.get(f'/auth/activate/{expired_activation_token.token}', follow_redirects=True)
        assert b'expired' in response.data

    def test_unknown_token(self, client, db_session):
        response = client.get('/auth/activate/unknown', follow_redirects=True)
        assert b'Invalid or expired activation token' in response.data


class TestLogin:
    def test_login_redirects_to_dashboard(self, client, test_user):
        response = client.post('/auth/login', data={'email': 'test@example.com', 'password': 'TestPass123!'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/dashboard')
        with client.session_transaction() as sess:
            assert sess['user_id'] == test_user.user_id

    def test_admin_lands_on_console(self, client, admin_user):
        response = client.post('/auth/login', data={'email': 'admin@example.com', 'password': 'TestPass123!'})
        assert response.status_code == 302
        assert '/admin' in response.headers['Location']

    def test_inactive_account_message(self, client, test_user_inactive):
        response = client.post('/auth/login', data={'email': 'inactive@example.com', 'password': 'TestPass123!'})
        assert b'Account not activated' in response.data

    def test_bad_password(self, client, test_user):
        response = client.post('/auth/login', data={'email': 'test@example.com', 'password': 'bad'})
        assert b'Invalid email or password' in response.data

    def test_logout_clears_session(self, user_client):
        response = user_client.get('/auth/logout')
        assert response.status_code == 302
        with user_client.session_transaction() as sess:
            assert 'user_id' not in sess


class TestPasswordReset:
    def test_forgot_password_page(self, client):
        response = client.get('/auth/forgot-password')
        assert response.status_code == 200
        assert b'Reset your password' in response.data

    def test_forgot_password_creates_token_for_active_user(self, client, test_user):
        response = client.post('/auth/forgot-password', data={'email': 'test@example.com'})
        assert response.status_code == 302
        assert PasswordResetToken.query.filter_by(user_id=test_user.id).first() is not None

    def test_forgot_password_ignores_inactive_user(self, client, test_user_inactive):
        client.post('/auth/forgot-password', data={'email': 'inactive@example.com'})
        assert PasswordResetToken.query.filter_by(user_id=test_user_inactive.id).first() is None

    def test_reset_password(self, client, db_session, test_user, password_reset_token):
        response = client.post(f'/auth/reset-password/{password_reset_token.token}',
                               data={'password': 'NewPass456!', 'confirm_password': 'NewPass456!'})
        assert response.status_code == 302
        db_session.refresh(test_user)
        assert verify_password('NewPass456!', test_user.password_hash)
        assert password_reset_token.used

    def test_reset_password_mismatch(self, client, password_reset_token):
        response = client.post(f'/auth/reset-password/{password_reset_token.token}',
                               data={'password': 'NewPass456!', 'confirm_password': 'Other456!'})
        assert b'Passwords do not match' in response.data


class TestAccessControl:
    def test_api_requires_login(self, client, db_session):
        response = client.get('/api/gamification')
        assert response.status_code == 401
        assert response.json['error'] == 'UNAUTHORIZED'

    def test_inactive_user_is_forbidden(self, client, login_as, test_user_inactive):
        login_as(test_user_inactive)
        response = client.get('/api/gamification')
        assert response.status_code == 403

    def test_admin_api_rejects_regular_user(self, user_client):
        response = user_client.get('/admin/api/articles')
        assert response.status_code == 403
        assert response.json['error'] == 'FORBIDDEN'
