"""
Gamification

FLOW OVERVIEW
- get_or_create_xp(user_id)
  • Lazily creates the XP row and the default streaks (login, learning, achievement).
- award_xp(user_id, amount, reason) → (level_up, new_level)
  • 1000 XP per level: level = xp // 1000 + 1.
- update_streak(user_id, streak_type, today)
  • Same day: unchanged. Next day: +1. Any gap: reset to 1.
  • Every 7th consecutive day awards a 100 XP bonus.
- xp_to_next_level / xp_progress: figures for the XP level card.
- summary(user_id): XP row, progress and streaks for the dashboard.
- ACHIEVEMENTS: badge catalog. grant_achievement(user_id, key) is idempotent;
  badges granted automatically:
  • first_course: first completed learning item.
  • consistent_learner: learning streak reaches 7 days.
  • perfect_score: 3 correct quiz answers in a row.
- achievements_summary(user_id): earned badges, the catalog with unlock flags, totals.
"""

import logging
from datetime import date
from typing import Dict, Optional, Tuple

from ..models import db, Achievement, UserXP, UserStreak
from .error_handlers import RecordNotFound

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 1000
STREAK_TYPES = ('login', 'learning', 'achievement')
STREAK_MILESTONE_DAYS = 7
STREAK_MILESTONE_XP = 100


def level_for(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def xp_to_next_level(xp_row) -> int:
    return xp_row.current_level * XP_PER_LEVEL - xp_row.current_xp


def xp_progress(xp_row) -> float:
    """Percentage of the way through the current level, capped at 100"""
    base = (xp_row.current_level - 1) * XP_PER_LEVEL
    progress = (xp_row.current_xp - base) / XP_PER_LEVEL * 100
    return min(max(progress, 0.0), 100.0)


def get_or_create_xp(user_id: int) -> UserXP:
    xp_row = UserXP.query.filter_by(user_id=user_id).first()
    if xp_row is not None:
        return xp_row

    xp_row = UserXP(user_id=user_id, current_xp=0, current_level=1, total_xp_earned=0)
    db.session.add(xp_row)
    for streak_type in STREAK_TYPES:
        if not UserStreak.query.filter_by(user_id=user_id, streak_type=streak_type).first():
            db.session.add(UserStreak(user_id=user_id, streak_type=streak_type,
                                      current_streak=0, longest_streak=0))
    db.session.commit()
    logger.info(f"Initialized XP and streaks for user {user_id}")
    return xp_row


def award_xp(user_id: int, amount: int, reason: str = '') -> Tuple[bool, int]:
    """
    Add XP to a user and recompute the level.

    Returns:
        (level_up, new_level)
    """
    xp_row = get_or_create_xp(user_id)
    previous_level = xp_row.current_level
    xp_row.current_xp = (xp_row.current_xp or 0) + amount
    xp_row.total_xp_earned = (xp_row.total_xp_earned or 0) + amount
    xp_row.current_level = level_for(xp_row.current_xp)
    db.session.commit()

    level_up = xp_row.current_level > previous_level
    logger.info(f"+{amount} XP for user {user_id} ({reason}); level {xp_row.current_level}")
    return level_up, xp_row.current_level


def update_streak(user_id: int, streak_type: str, today: Optional[date] = None) -> UserStreak:
    """Advance, keep, or reset one streak for activity on `today`"""
    today = today or date.today()
    streak = UserStreak.query.filter_by(user_id=user_id, streak_type=streak_type).first()

    if streak is None:
        streak = UserStreak(user_id=user_id, streak_type=streak_type,
                            current_streak=1, longest_streak=1, last_activity_date=today)
        db.session.add(streak)
        db.session.commit()
        return streak

    if streak.last_activity_date is not None:
        days = (today - streak.last_activity_date).days
        if days <= 0:
            return streak
        new_streak = (streak.current_streak or 0) + 1 if days == 1 else 1
    else:
        new_streak = 1

    streak.current_streak = new_streak
    streak.longest_streak = max(streak.longest_streak or 0, new_streak)
    streak.last_activity_date = today
    db.session.commit()

    if new_streak % STREAK_MILESTONE_DAYS == 0:
        award_xp(user_id, STREAK_MILESTONE_XP, f"{new_streak} day {streak_type} streak")
    if streak_type == 'learning' and new_streak >= STREAK_MILESTONE_DAYS:
        grant_achievement(user_id, 'consistent_learner')
    return streak


def summary(user_id: int) -> Dict:
    xp_row = get_or_create_xp(user_id)
    streaks = UserStreak.query.filter_by(user_id=user_id).order_by(UserStreak.streak_type).all()
    return {
        'xp': xp_row.to_dict(),
        'xp_to_next_level': xp_to_next_level(xp_row),
        'xp_progress': round(xp_progress(xp_row), 1),
        'streaks': [s.to_dict() for s in streaks],
    }


# Badge catalog: key → (title, description, badge icon, points, category)
ACHIEVEMENTS = {
    'first_course': ('Langkah Pertama', 'Menyelesaikan kursus pertama Anda', '🎯', 100, 'learning'),
    'consistent_learner': ('Pembelajar Konsisten', 'Belajar selama 7 hari berturut-turut', '🔥', 150, 'consistency'),
    'quick_learner': ('Pembelajar Cepat', 'Menyelesaikan kursus dalam waktu kurang dari target', '⚡', 200, 'speed'),
    'knowledge_seeker': ('Pencari Ilmu', 'Menyelesaikan 5 kursus dalam kategori berbeda', '📚', 250, 'exploration'),
    'marathon_learner': ('Marathoner', 'Belajar selama 10 jam dalam seminggu', '🏃', 300, 'dedication'),
    'perfect_score': ('Nilai Sempurna', 'Menjawab benar 3 quiz berturut-turut', '💯', 200, 'excellence'),
    'community_helper': ('Pembantu Komunitas', 'Membantu 10 siswa di forum diskusi', '🤝', 150, 'community'),
    'early_bird': ('Bangun Pagi', 'Belajar sebelum jam 7 pagi selama 5 hari', '🌅', 100, 'habits'),
    'night_owl': ('Burung Hantu', 'Belajar setelah jam 10 malam selama 5 hari', '🦉', 100, 'habits'),
    'completionist': ('Perfectionist', 'Menyelesaikan semua modul dalam kursus dengan 100%', '🏆', 500, 'mastery'),
}


def grant_achievement(user_id: int, key: str) -> Tuple[Achievement, bool]:
    """
    Give a user one badge from the catalog.

    Returns:
        (achievement, created); an already earned badge is returned unchanged
    """
    if key not in ACHIEVEMENTS:
        raise RecordNotFound(f"Unknown achievement '{key}'")

    existing = Achievement.query.filter_by(user_id=user_id, type=key).first()
    if existing is not None:
        return existing, False

    title, description, badge_icon, _, _ = ACHIEVEMENTS[key]
    achievement = Achievement(user_id=user_id, type=key, title=title,
                              description=description, badge_icon=badge_icon)
    db.session.add(achievement)
    db.session.commit()
    logger.info(f"Achievement {key} earned by user {user_id}")
    return achievement, True


def achievements_summary(user_id: int) -> Dict:
    earned = (
        Achievement.query
        .filter_by(user_id=user_id)
        .order_by(Achievement.earned_at.desc(), Achievement.id.desc())
        .all()
    )
    earned_keys = {a.type for a in earned}
    catalog = []
    for key, (title, description, badge_icon, points, category) in ACHIEVEMENTS.items():
        catalog.append({
            'id': key,
            'title': title,
            'description': description,
            'badge_icon': badge_icon,
            'points': points,
            'category': category,
            'unlocked': key in earned_keys,
        })
    return {
        'earned': [a.to_dict() for a in earned],
        'available': catalog,
        'stats': {
            'total_achievements': len(ACHIEVEMENTS),
            'unlocked_achievements': len(earned_keys),
            'total_points': sum(ACHIEVEMENTS[key][3] for key in earned_keys if key in ACHIEVEMENTS),
        },
    }
