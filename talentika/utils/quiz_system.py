"""
Quiz System

FLOW OVERVIEW
- list_categories() / quizzes_for_category(category_id): active rows only.
- random_quiz(category_id, difficulty): uniform pick among matching active quizzes.
- submit_answer(user_id, quiz_id, answer, time_taken_seconds)
  • Correct when trimmed, case-insensitive equal to the stored answer.
  • Stores a QuizAttempt; correct answers award `points_reward` XP and bump
    the learning streak.
  • Updates the user's leaderboard row, then re-ranks everybody by points.
  • Three correct answers in a row earn the perfect_score achievement.
- history(user_id): latest 20 attempts. leaderboard(): top 20 by rank. stats(user_id).
"""

import logging
import random
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models import db, Quiz, QuizAttempt, QuizCategory, QuizLeaderboard
from .error_handlers import RecordNotFound, ValidationError
from .gamification import award_xp, grant_achievement, update_streak

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20
LEADERBOARD_LIMIT = 20
PERFECT_SCORE_STREAK = 3


def answers_match(answer: str, correct_answer: str) -> bool:
    return (answer or '').strip().lower() == (correct_answer or '').strip().lower()


def list_categories() -> List[QuizCategory]:
    return QuizCategory.query.filter_by(is_active=True).order_by(QuizCategory.name).all()


def quizzes_for_category(category_id: int) -> List[Quiz]:
    return (
        Quiz.query
        .filter_by(category_id=category_id, is_active=True)
        .order_by(Quiz.created_at)
        .all()
    )


def random_quiz(category_id: Optional[int] = None, difficulty: Optional[str] = None,
                rng: Optional[random.Random] = None) -> Optional[Quiz]:
    query = Quiz.query.filter_by(is_active=True)
    if category_id:
        query = query.filter_by(category_id=category_id)
    if difficulty:
        query = query.filter_by(difficulty=difficulty)
    quizzes = query.all()
    if not quizzes:
        return None
    return (rng or random).choice(quizzes)


def submit_answer(user_id: int, quiz_id: int, answer: str,
                  time_taken_seconds: int = 0) -> Dict[str, Any]:
    """
    Grade one answer and update XP, streak, and leaderboard.

    Returns:
        dict with is_correct, points_earned, explanation, correct_answer, level_up
    """
    if answer is None or str(answer).strip() == '':
        raise ValidationError("Answer is required.")

    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None or not quiz.is_active:
        raise RecordNotFound("Quiz not found.")

    is_correct = answers_match(str(answer), quiz.correct_answer)
    points = (quiz.points_reward or 0) if is_correct else 0

    attempt = QuizAttempt(
        user_id=user_id,
        quiz_id=quiz.id,
        user_answer=str(answer).strip(),
        is_correct=is_correct,
        points_earned=points,
        time_taken_seconds=max(int(time_taken_seconds or 0), 0),
    )
    db.session.add(attempt)
    board_row = _update_leaderboard(user_id, is_correct, points)
    db.session.commit()

    level_up = False
    if is_correct:
        level_up, _ = award_xp(user_id, points, f"Correct answer: {quiz.title}")
        update_streak(user_id, 'learning')
        if board_row.current_streak >= PERFECT_SCORE_STREAK:
            grant_achievement(user_id, 'perfect_score')

    logger.info(f"Quiz {quiz.id} answered by user {user_id}: correct={is_correct}")
    return {
        'is_correct': is_correct,
        'points_earned': points,
        'explanation': quiz.explanation,
        'correct_answer': None if is_correct else quiz.correct_answer,
        'level_up': level_up,
    }


def _update_leaderboard(user_id: int, is_correct: bool, points: int):
    row = QuizLeaderboard.query.filter_by(user_id=user_id).first()
    if row is None:
        row = QuizLeaderboard(user_id=user_id, total_points=0, total_quizzes_completed=0,
                              correct_answers=0, current_streak=0, longest_streak=0)
        db.session.add(row)

    row.total_quizzes_completed = (row.total_quizzes_completed or 0) + 1
    row.total_points = (row.total_points or 0) + points
    if is_correct:
        row.correct_answers = (row.correct_answers or 0) + 1
        row.current_streak = (row.current_streak or 0) + 1
        row.longest_streak = max(row.longest_streak or 0, row.current_streak)
    else:
        row.current_streak = 0
    row.last_quiz_date = datetime.utcnow()
    db.session.flush()
    _rerank()
    return row


def _rerank():
    rows = (
        QuizLeaderboard.query
        .order_by(QuizLeaderboard.total_points.desc(), QuizLeaderboard.updated_at.asc(),
                  QuizLeaderboard.id.asc())
        .all()
    )
    for position, row in enumerate(rows, start=1):
        row.rank_position = position


def history(user_id: int) -> List[QuizAttempt]:
    return (
        QuizAttempt.query
        .filter_by(user_id=user_id)
        .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
        .limit(HISTORY_LIMIT)
        .all()
    )


def leaderboard() -> List[QuizLeaderboard]:
    return (
        QuizLeaderboard.query
        .order_by(QuizLeaderboard.rank_position.asc(), QuizLeaderboard.id.asc())
        .limit(LEADERBOARD_LIMIT)
        .all()
    )


def stats(user_id: int) -> Optional[Dict[str, Any]]:
    row = QuizLeaderboard.query.filter_by(user_id=user_id).first()
    if row is None:
        return None
    data = row.to_dict()
    completed = row.total_quizzes_completed or 0
    data['accuracy'] = round((row.correct_answers or 0) / completed * 100, 1) if completed else 0.0
    return data
