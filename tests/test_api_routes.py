"""
Tests for the dashboard API blueprint (/api).
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from talentika.models import (
    Achievement, CommunityChallenge, CommunityEvent, Course, LearningContent, LearningProgress, Mentor,
    PaymentTransaction, Quiz, QuizCategory, ScrapedContent, UserXP
)


def _opportunity(db_session, title, **extra):
    values = dict(title=title, url='https://example.com/' + title, source_website='example.com',
                  category='scholarship', content_type='scholarship', is_active=True, tags=[])
    values.update(extra)
    row = ScrapedContent(**values)
    db_session.add(row)
    db_session.commit()
    return row


class TestOpportunityFeed:
    def test_personalised_order(self, user_client, db_session, test_user):
        test_user.interests = ['teknologi']
        db_session.commit()
        _opportunity(db_session, 'Beasiswa Umum')
        _opportunity(db_session, 'Beasiswa Teknologi', tags=['teknologi'])

        response = user_client.get('/api/feed/opportunities')
        assert response.status_code == 200
        items = response.json['items']
        assert items[0]['title'] == 'Beasiswa Teknologi'
        assert items[0]['relevance_score'] > items[1]['relevance_score']

    def test_free_plan_locks_beyond_limit(self, user_client, db_session):
        for index in range(7):
            _opportunity(db_session, f'Lomba {index}')
        items = user_client.get('/api/feed/opportunities').json['items']
        assert [item['is_locked'] for item in items] == [False] * 5 + [True] * 2

    def test_premium_sees_everything(self, client, login_as, premium_user, db_session):
        login_as(premium_user)
        for index in range(7):
            _opportunity(db_session, f'Lomba {index}')
        items = client.get('/api/feed/opportunities').json['items']
        assert not any(item['is_locked'] for item in items)

    def test_category_and_search(self, user_client, db_session):
        _opportunity(db_session, 'Magang Data', category='job', content_type='job')
        _opportunity(db_session, 'Beasiswa S2')
        _opportunity(db_session, 'Inactive', is_active=False)
        items = user_client.get('/api/feed/opportunities?category=JOB').json['items']
        assert [i['title'] for i in items] == ['Magang Data']
        items = user_client.get('/api/feed/opportunities?search=s2').json['items']
        assert [i['title'] for i in items] == ['Beasiswa S2']

    def test_stats(self, user_client, db_session):
        for index in range(10):
            _opportunity(db_session, f'Item {index}')
        old = _opportunity(db_session, 'Old')
        old.created_at = datetime.utcnow() - timedelta(days=3)
        db_session.commit()
        stats = user_client.get('/api/opportunities/stats').json['stats']
        assert stats == {'total': 11, 'today': 10, 'trending': 1}


class TestLearning:
    @pytest.fixture
    def content(self, db_session):
        free = LearningContent(title='Intro Python', content_type='course', tags=['programming'],
                               is_featured=True, average_rating=4.5)
        premium = LearningContent(title='Advanced ML', content_type='course', is_premium=True)
        db_session.add_all([free, premium])
        db_session.commit()
        return free, premium

    def test_feed_locks_premium_content(self, user_client, content):
        body = user_client.get('/api/feed/learning').json
        locked = {item['title']: item['is_locked'] for item in body['items']}
        assert locked == {'Intro Python': False, 'Advanced ML': True}
        assert [item['title'] for item in body['trending']] == ['Intro Python']

    def test_progress_completion_awards_xp_once(self, user_client, test_user, content):
        free, _ = content
        response = user_client.post('/api/learning/progress', json={'content_id': free.id, 'progress_percentage': 40})
        assert response.status_code == 200
        assert response.json['enrolled'] is True
        assert response.json['progress']['status'] == 'in_progress'

        user_client.post('/api/learning/progress', json={'content_id': free.id, 'status': 'completed', 'rating': 5})
        user_client.post('/api/learning/progress', json={'content_id': free.id, 'progress_percentage': 100})

        progress = LearningProgress.query.filter_by(user_id=test_user.id).one()
        assert progress.status == 'completed'
        assert progress.rating == 5
        assert UserXP.query.filter_by(user_id=test_user.id).one().current_xp == 50
        assert free.total_enrollments == 1
        assert Achievement.query.filter_by(user_id=test_user.id, type='first_course').count() == 1

    def test_premium_content_requires_subscription(self, user_client, content):
        _, premium = content
        response = user_client.post('/api/learning/progress', json={'content_id': premium.id})
        assert response.status_code == 403

    def test_invalid_rating(self, user_client, content):
        free, _ = content
        response = user_client.post('/api/learning/progress', json={'content_id': free.id, 'rating': 9})
        assert response.status_code == 400

    def test_progress_listing(self, user_client, content):
        free, _ = content
        user_client.post('/api/learning/progress', json={'content_id': free.id, 'time_spent_minutes': 25})
        body = user_client.get('/api/learning/progress').json
        assert body['in_progress'] == 1
        assert body['total_minutes'] == 25

    def test_courses_lock_after_free_limit(self, user_client, db_session):
        for index in range(5):
            db_session.add(Course(title=f'Course {index}'))
        db_session.commit()
        items = user_client.get('/api/courses').json['items']
        assert [item['is_locked'] for item in items] == [False, False, False, True, True]


class TestProfile:
    def test_interests(self, user_client, test_user):
        response = user_client.put('/api/profile/interests', json={'interests': 'teknologi, seni'})
        assert response.status_code == 200
        assert test_user.interests == ['teknologi', 'seni']

    def test_assessment_round(self, user_client, test_user):
        response = user_client.post('/api/assessment', json={
            'personality_type': 'Investigative',
            'career_recommendations': ['Data Scientist'],
            'talent_areas': 'analysis, research',
        })
        assert response.status_code == 201
        latest = user_client.get('/api/assessment').json['assessment']
        assert latest['personality_type'] == 'investigative'
        assert latest['talent_areas'] == ['analysis', 'research']
        profile = user_client.get('/api/profile').json
        assert profile['subscription_status'] == 'inactive'
        assert 'password_hash' not in profile['user']

    def test_assessment_requires_type(self, user_client):
        assert user_client.post('/api/assessment', json={}).status_code == 400

    def test_events_lock_premium_only(self, user_client, db_session):
        db_session.add(CommunityEvent(title='Webinar', event_date=datetime.utcnow() + timedelta(days=3),
                                      is_premium_only=True))
        db_session.add(CommunityEvent(title='Past', event_date=datetime.utcnow() - timedelta(days=3)))
        db_session.commit()
        items = user_client.get('/api/community/events').json['items']
        assert [(i['title'], i['is_locked']) for i in items] == [('Webinar', True)]


class TestGamificationApi:
    def test_checkin_starts_login_streak(self, user_client):
        body = user_client.post('/api/gamification/checkin').json
        assert body['streak']['streak_type'] == 'login'
        assert body['streak']['current_streak'] == 1
        assert body['xp']['current_level'] == 1

    def test_achievements(self, user_client, test_user):
        body = user_client.get('/api/achievements').json
        assert body['stats'] == {'total_achievements': 10, 'unlocked_achievements': 0, 'total_points': 0}
        assert body['earned'] == []
        assert all(item['unlocked'] is False for item in body['available'])


class TestCommunityApi:
    @pytest.fixture
    def challenge(self, db_session):
        row = CommunityChallenge(title='Lomba Esai', start_date=datetime.utcnow() - timedelta(days=1),
                                 end_date=datetime.utcnow() + timedelta(days=30))
        db_session.add(row)
        db_session.commit()
        return row

    def test_join_and_list(self, user_client, challenge):
        response = user_client.post(f'/api/community/challenges/{challenge.id}/join')
        assert response.status_code == 201
        assert response.json['participation']['status'] == 'joined'

        items = user_client.get('/api/community/challenges').json['items']
        assert items[0]['joined'] is True
        assert items[0]['participants'] == 1

        again = user_client.post(f'/api/community/challenges/{challenge.id}/join')
        assert again.status_code == 400
        assert again.json['error'] == 'VALIDATION_ERROR'

    def test_join_ended_or_missing(self, user_client, db_session, challenge):
        assert user_client.post('/api/community/challenges/9999/join').status_code == 404
        challenge.end_date = datetime.utcnow() - timedelta(days=1)
        db_session.commit()
        response = user_client.post(f'/api/community/challenges/{challenge.id}/join')
        assert response.status_code == 400
        assert response.json['message'] == 'This challenge has ended.'

    def test_join_requires_login(self, client, challenge):
        assert client.post(f'/api/community/challenges/{challenge.id}/join').status_code == 401


class TestQuizApi:
    @pytest.fixture
    def quiz(self, db_session):
        category = QuizCategory(name='Sejarah')
        db_session.add(category)
        db_session.commit()
        row = Quiz(title='Proklamasi', category_id=category.id, question='Tahun proklamasi?',
                   correct_answer='1945', points_reward=20)
        db_session.add(row)
        db_session.commit()
        return row

    def test_random_hides_answer(self, user_client, quiz):
        body = user_client.get('/api/quiz/random').json
        assert body['quiz']['id'] == quiz.id
        assert 'correct_answer' not in body['quiz']

    def test_random_none_available(self, user_client, db_session):
        assert user_client.get('/api/quiz/random?difficulty=hard').status_code == 404

    def test_answer_and_stats(self, user_client, quiz):
        body = user_client.post(f'/api/quiz/{quiz.id}/answer', json={'answer': '1945'}).json
        assert body['is_correct'] is True
        assert body['points_earned'] == 20
        stats = user_client.get('/api/quiz/stats').json['stats']
        assert stats['total_points'] == 20
        board = user_client.get('/api/quiz/leaderboard').json['items']
        assert board[0]['rank_position'] == 1
        assert len(user_client.get('/api/quiz/history').json['items']) == 1

    def test_answer_required(self, user_client, quiz):
        response = user_client.post(f'/api/quiz/{quiz.id}/answer', json={'answer': ''})
        assert response.status_code == 400

    def test_categories(self, user_client, quiz):
        categories = user_client.get('/api/quiz/categories').json['items']
        assert categories[0]['name'] == 'Sejarah'
        quizzes = user_client.get(f"/api/quiz/categories/{categories[0]['id']}/quizzes").json['items']
        assert quizzes[0]['title'] == 'Proklamasi'


class TestMentorshipApi:
    @pytest.fixture
    def mentor(self, db_session):
        row = Mentor(name='Dr. Rina', title='Career Coach', rating=4.8)
        db_session.add(row)
        db_session.commit()
        return row

    def test_book_and_cancel(self, user_client, mentor):
        day = (datetime.utcnow() + timedelta(days=3)).date().isoformat()
        with patch('talentika.utils.mentorship.send_email', return_value=True):
            response = user_client.post('/api/mentorship/sessions', json={
                'mentor_id': mentor.id, 'session_date': day, 'time_slot': '10:00',
            })
        assert response.status_code == 201
        session_id = response.json['session']['id']
        assert len(user_client.get('/api/mentorship/sessions').json['items']) == 1

        response = user_client.post(f'/api/mentorship/sessions/{session_id}/cancel')
        assert response.json['session']['status'] == 'cancelled'

    def test_mentorship_type_forbidden_for_individual(self, user_client, mentor):
        day = (datetime.utcnow() + timedelta(days=3)).date().isoformat()
        response = user_client.post('/api/mentorship/sessions', json={
            'mentor_id': mentor.id, 'session_date': day, 'time_slot': '10:00', 'session_type': 'mentorship',
        })
        assert response.status_code == 403

    def test_slots_and_mentors(self, user_client, mentor):
        body = user_client.get('/api/mentorship/slots').json
        assert body['plan'] == 'individual'
        assert '09:00' in body['slots']
        assert user_client.get('/api/mentors').json['items'][0]['name'] == 'Dr. Rina'


class TestPaymentsApi:
    def test_plans_are_public(self, client, premium_plan):
        body = client.get('/api/subscription/plans').json
        assert body['items'][0]['name'] == 'Premium'

    def test_validate_voucher(self, user_client, premium_plan, percent_voucher):
        body = user_client.post('/api/vouchers/validate', json={'code': 'hemat20', 'plan_id': premium_plan.id}).json
        assert body['voucher']['final_amount'] == 80000

    def test_invalid_voucher(self, user_client, premium_plan):
        response = user_client.post('/api/vouchers/validate', json={'code': 'NOPE', 'plan_id': premium_plan.id})
        assert response.status_code == 400
        assert 'invalid' in response.json['message']

    def test_create_payment_and_status(self, user_client, premium_plan):
        with patch('talentika.utils.payments.RemoteFunctionClient') as client_cls:
            client_cls.return_value.invoke.return_value = {
                'success': True, 'invoice_id': 'inv-9', 'invoice_url': 'https://checkout/inv-9'}
            response = user_client.post('/api/payments', json={
                'plan_id': premium_plan.id, 'payment_method': 'e_wallet'})
        assert response.status_code == 201
        assert response.json['invoice_url'] == 'https://checkout/inv-9'

        status = user_client.get(f"/api/payments/{response.json['transaction_id']}").json
        assert status['transaction']['status'] == 'pending'

    def test_gateway_failure_is_502(self, user_client, premium_plan):
        from talentika.utils.error_handlers import RemoteFunctionError
        with patch('talentika.utils.payments.RemoteFunctionClient') as client_cls:
            client_cls.return_value.invoke.side_effect = RemoteFunctionError('Gateway down')
            response = user_client.post('/api/payments', json={
                'plan_id': premium_plan.id, 'payment_method': 'e_wallet'})
        assert response.status_code == 502
        assert response.json['message'] == 'Gateway down'
        assert PaymentTransaction.query.one().status == 'failed'

    def _pending(self, db_session, user, plan):
        transaction = PaymentTransaction(user_id=user.id, subscription_id=plan.id, amount=100000)
        db_session.add(transaction)
        db_session.commit()
        return transaction

    def test_webhook_requires_token(self, client, db_session, test_user, premium_plan):
        transaction = self._pending(db_session, test_user, premium_plan)
        payload = {'external_id': transaction.invoice_number, 'status': 'PAID'}
        assert client.post('/api/payments/webhook', json=payload).status_code == 401
        assert client.post('/api/payments/webhook', json=payload,
                           headers={'X-Callback-Token': 'wrong'}).status_code == 401
        assert client.post('/api/payments/webhook', json=payload,
                           headers={'X-Callback-Token': 'caf\u00e9'}).status_code == 401

    def test_webhook_completes_payment(self, client, db_session, test_user, premium_plan):
        transaction = self._pending(db_session, test_user, premium_plan)
        response = client.post('/api/payments/webhook', headers={'X-Callback-Token': 'callback-token'},
                               json={'external_id': transaction.invoice_number, 'status': 'PAID'})
        assert response.status_code == 200
        assert response.json['status'] == 'completed'
        assert test_user.subscription_status == 'active'


    def test_webhook_errors(self, client, db_session):
        headers = {'X-Callback-Token': 'callback-token'}
        assert client.post('/api/payments/webhook', headers=headers, json={'status': 'PAID'}).status_code == 400
        response = client.post('/api/payments/webhook', headers=headers,
                               json={'external_id': 'missing', 'status': 'PAID'})
        assert response.status_code == 404

    def test_current_subscription(self, client, login_as, db_session, test_user, premium_plan):
        transaction = self._pending(db_session, test_user, premium_plan)
        client.post('/api/payments/webhook', headers={'X-Callback-Token': 'callback-token'},
                    json={'external_id': transaction.invoice_number, 'status': 'PAID'})
        login_as(test_user)
        body = client.get('/api/subscription').json
        assert body['subscription_status'] == 'active'
        assert body['subscription']['package_name'] == 'Premium'
        assert body['limits']['max_courses'] == -1
