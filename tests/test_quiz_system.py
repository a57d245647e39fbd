import random
import pytest
from datetime import datetime
from talentika.models import Achievement, Quiz, QuizAttempt, QuizCategory, QuizLeaderboard, UserXP
from talentika.utils import quiz_system
from talentika.utils.error_handlers import RecordNotFound, ValidationError


@pytest.fixture
def category(db_session):
    row = QuizCategory(name='Sains')
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def quiz(db_session, category):
    row = Quiz(title='Fotosintesis', category_id=category.id, difficulty='easy',
               question='Gas apa yang dihasilkan fotosintesis?', options=['Oksigen', 'Nitrogen'],
               correct_answer='Oksigen', explanation='Tumbuhan melepas oksigen.', points_reward=10)
    db_session.add(row)
    db_session.commit()
    return row


class TestGrading:
    def test_answers_match_ignores_case_and_space(self):
        assert quiz_system.answers_match('  oksigen ', 'Oksigen')
        assert not quiz_system.answers_match('Nitrogen', 'Oksigen')

    def test_correct_answer(self, test_user, quiz):
        result = quiz_system.submit_answer(test_user.id, quiz.id, 'oksigen', 12)
        assert result['is_correct'] is True
        assert result['points_earned'] == 10
        assert result['correct_answer'] is None
        assert result['explanation'] == 'Tumbuhan melepas oksigen.'
        assert UserXP.query.filter_by(user_id=test_user.id).one().current_xp == 10

        attempt = QuizAttempt.query.one()
        assert attempt.time_taken_seconds == 12

    def test_wrong_answer_reveals_solution(self, test_user, quiz):
        result = quiz_system.submit_answer(test_user.id, quiz.id, 'Nitrogen')
        assert result['is_correct'] is False
        assert result['points_earned'] == 0
        assert result['correct_answer'] == 'Oksigen'
        assert UserXP.query.filter_by(user_id=test_user.id).first() is None

    def test_blank_answer(self, test_user, quiz):
        with pytest.raises(ValidationError):
            quiz_system.submit_answer(test_user.id, quiz.id, '   ')

    def test_inactive_quiz(self, db_session, test_user, quiz):
        quiz.is_active = False
        db_session.commit()
        with pytest.raises(RecordNotFound):
            quiz_system.submit_answer(test_user.id, quiz.id, 'Oksigen')


class TestLeaderboard:
    def test_streaks_and_accuracy(self, test_user, quiz):
        for answer in ('Oksigen', 'Oksigen', 'Nitrogen', 'Oksigen'):
            quiz_system.submit_answer(test_user.id, quiz.id, answer)
        row = QuizLeaderboard.query.filter_by(user_id=test_user.id).one()
        assert row.total_points == 30
        assert row.total_quizzes_completed == 4
        assert row.correct_answers == 3
        assert row.current_streak == 1
        assert row.longest_streak == 2
        assert quiz_system.stats(test_user.id)['accuracy'] == 75.0

    def test_ranks_follow_points(self, db_session, test_user, premium_user, quiz):
        quiz_system.submit_answer(test_user.id, quiz.id, 'Oksigen')
        quiz_system.submit_answer(premium_user.id, quiz.id, 'Oksigen')
        quiz_system.submit_answer(premium_user.id, quiz.id, 'Oksigen')
        board = quiz_system.leaderboard()
        assert [row.user_id for row in board] == [premium_user.id, test_user.id]
        assert [row.rank_position for row in board] == [1, 2]
        assert board[0].to_dict()['full_name'] == premium_user.full_name

    def test_tied_points_listed_in_rank_order(self, db_session, test_user, premium_user, admin_user, quiz):
        db_session.add_all([
            QuizLeaderboard(user_id=test_user.id, total_points=50, updated_at=datetime(2026, 2, 1)),
            QuizLeaderboard(user_id=premium_user.id, total_points=50, updated_at=datetime(2026, 1, 1)),
        ])
        db_session.commit()
        quiz_system.submit_answer(admin_user.id, quiz.id, 'Nitrogen')
        board = quiz_system.leaderboard()
        assert [row.user_id for row in board] == [premium_user.id, test_user.id, admin_user.id]
        assert [row.rank_position for row in board] == [1, 2, 3]

    def test_three_correct_in_a_row_earns_perfect_score(self, test_user, quiz):
        for answer in ('Oksigen', 'Oksigen', 'Nitrogen', 'Oksigen', 'Oksigen'):
            quiz_system.submit_answer(test_user.id, quiz.id, answer)
        assert Achievement.query.filter_by(user_id=test_user.id, type='perfect_score').count() == 0
        quiz_system.submit_answer(test_user.id, quiz.id, 'Oksigen')
        assert Achievement.query.filter_by(user_id=test_user.id, type='perfect_score').count() == 1

    def test_stats_without_attempts(self, test_user):
        assert quiz_system.stats(test_user.id) is None


class TestSelection:
    def test_random_quiz_filters(self, db_session, category, quiz):
        hard = Quiz(title='Hard', category_id=category.id, difficulty='hard',
                    question='?', correct_answer='x')
        db_session.add(hard)
        db_session.commit()
        assert quiz_system.random_quiz(difficulty='hard').id == hard.id
        assert quiz_system.random_quiz(category_id=category.id, rng=random.Random(1)) in (quiz, hard)
        assert quiz_system.random_quiz(difficulty='expert') is None

    def test_public_dict_hides_answer(self, quiz):
        data = quiz.to_public_dict()
        assert 'correct_answer' not in data
        assert 'explanation' not in data

    def test_categories_and_history(self, test_user, category, quiz):
        assert [c.name for c in quiz_system.list_categories()] == ['Sains']
        assert [q.id for q in quiz_system.quizzes_for_category(category.id)] == [quiz.id]
        quiz_system.submit_answer(test_user.id, quiz.id, 'Oksigen')
        assert len(quiz_system.history(test_user.id)) == 1
