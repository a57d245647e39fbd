"""
Relevance Scoring

FLOW OVERVIEW
- UserProfile: the personalisation inputs (interests + latest assessment result).
- RelevanceWeights: bonus table; OPPORTUNITY_WEIGHTS and LEARNING_WEIGHTS presets.
- score_item(item, profile, weights, now)
  • Sums small integer bonuses: matched tags, career recommendation, talent area,
    RIASEC keyword, recency, upcoming deadline, featured, highly rated.
  • Adding a matching tag never lowers the score.
- rank_items(items, profile, weights, sort_by, now) → scored copies, sorted.
- filter_items(items, search) → title/description/tag substring filter.

All functions are pure: they take row dicts and return new dicts.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .validators import parse_datetime


@dataclass
class UserProfile:
    """Who the feed is being ranked for"""
    interests: List[str] = field(default_factory=list)
    personality_type: Optional[str] = None
    career_recommendations: List[str] = field(default_factory=list)
    talent_areas: List[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user, assessment=None) -> 'UserProfile':
        """Build from a User row and its latest AssessmentResult (either may be sparse)"""
        interests = list(user.interests or []) if user is not None else []
        if assessment is None:
            return cls(interests=interests)
        for category in assessment.interest_categories or []:
            if category not in interests:
                interests.append(category)
        return cls(
            interests=interests,
            personality_type=assessment.personality_type,
            career_recommendations=list(assessment.career_recommendations or []),
            talent_areas=list(assessment.talent_areas or []),
        )


@dataclass
class RelevanceWeights:
    """Bonus values applied by score_item"""
    per_matched_tag: int = 2
    career_match: int = 3
    talent_match: int = 2
    personality_match: int = 1
    recent_bonus: int = 1
    recent_days: int = 7
    deadline_bonus: int = 2
    deadline_days: int = 30
    featured_bonus: int = 0
    high_rating_bonus: int = 0
    high_rating_threshold: float = 4.0
    use_priority_score: bool = False
    personality_keywords: Dict[str, List[str]] = field(default_factory=dict)


OPPORTUNITY_WEIGHTS = RelevanceWeights(
    personality_keywords={
        'realistic': ['teknik', 'engineering', 'teknologi', 'stem'],
        'investigative': ['research', 'penelitian', 'sains', 'science'],
        'artistic': ['creative', 'kreatif', 'design', 'art', 'seni'],
        'social': ['social', 'education', 'pendidikan', 'community'],
        'enterprising': ['business', 'bisnis', 'entrepreneurship', 'leadership'],
        'conventional': ['administration', 'management', 'finance', 'keuangan'],
    },
)

LEARNING_WEIGHTS = RelevanceWeights(
    career_match=5,
    talent_match=3,
    personality_match=2,
    recent_bonus=0,
    deadline_bonus=0,
    featured_bonus=3,
    high_rating_bonus=2,
    use_priority_score=True,
    personality_keywords={
        'realistic': ['engineering', 'teknologi', 'programming', 'coding'],
        'investigative': ['research', 'science', 'data', 'analysis'],
        'artistic': ['design', 'creative', 'art', 'music', 'writing'],
        'social': ['communication', 'presentation', 'leadership', 'psychology'],
        'enterprising': ['business', 'entrepreneurship', 'marketing', 'finance'],
        'conventional': ['management', 'organization', 'administration'],
    },
)

SORT_OPTIONS = ('relevance', 'deadline', 'newest', 'rating', 'duration')


def _lower_tags(item: Dict[str, Any]) -> List[str]:
    return [str(tag).lower() for tag in (item.get('tags') or [])]


def _text_contains(item: Dict[str, Any], tags: List[str], needle: str) -> bool:
    """needle in title, description, or any tag"""
    title = (item.get('title') or '').lower()
    description = (item.get('description') or '').lower()
    return needle in title or needle in description or any(needle in tag for tag in tags)


def _days_between(later: datetime, earlier: datetime) -> int:
    return int((later - earlier).total_seconds() // 86400)


def count_matched_tags(tags: Iterable[str], interests: Iterable[str]) -> int:
    """Tags matching any interest, substring either way"""
    interests = [i.lower() for i in interests if i]
    matched = 0
    for tag in tags:
        if any(interest in tag or tag in interest for interest in interests):
            matched += 1
    return matched


def score_item(item: Dict[str, Any], profile: UserProfile, weights: RelevanceWeights,
               now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Score one row for one user.

    Args:
        item: Row dict (title, description, tags, created_at, deadline, ...)
        profile: Personalisation inputs
        weights: Bonus table
        now: Reference time (defaults to utcnow)

    Returns:
        Copy of the item with `relevance_score` and `is_recommended`
    """
    now = now or datetime.utcnow()
    tags = _lower_tags(item)
    score = 0
    recommended = False

    if weights.use_priority_score:
        score += int(item.get('priority_score') or 0)

    if profile.interests and tags:
        score += count_matched_tags(tags, profile.interests) * weights.per_matched_tag

    careers = [c.lower() for c in profile.career_recommendations if c]
    if careers and any(_text_contains(item, tags, career) for career in careers):
        score += weights.career_match
        recommended = True

    talents = [t.lower() for t in profile.talent_areas if t]
    if talents and any(talent in tag for talent in talents for tag in tags):
        score += weights.talent_match

    if profile.personality_type:
        keywords = weights.personality_keywords.get(profile.personality_type.lower(), [])
        if any(_text_contains(item, tags, keyword) for keyword in keywords):
            score += weights.personality_match

    created_at = _as_datetime(item.get('created_at'))
    if weights.recent_bonus and created_at and _days_between(now, created_at) <= weights.recent_days:
        score += weights.recent_bonus

    deadline = _as_datetime(item.get('deadline'))
    if weights.deadline_bonus and deadline:
        days_left = _days_between(deadline, now)
        if 0 < days_left <= weights.deadline_days:
            score += weights.deadline_bonus

    if weights.featured_bonus and item.get('is_featured'):
        score += weights.featured_bonus

    if weights.high_rating_bonus and (item.get('average_rating') or 0) >= weights.high_rating_threshold:
        score += weights.high_rating_bonus

    scored = dict(item)
    scored['relevance_score'] = score
    scored['is_recommended'] = recommended
    return scored


def _as_datetime(value):
    if value is None or value == '':
        return None
    try:
        return parse_datetime(value)
    except ValueError:
        return None


def _sort_key(sort_by: str):
    if sort_by == 'deadline':
        # Soonest first, rows without a deadline last
        def key(item):
            deadline = _as_datetime(item.get('deadline'))
            return (deadline is None, deadline or datetime.max)
        return key, False
    if sort_by == 'newest':
        return (lambda item: _as_datetime(item.get('created_at')) or datetime.min), True
    if sort_by == 'rating':
        return (lambda item: item.get('average_rating') or 0), True
    if sort_by == 'duration':
        return (lambda item: item.get('duration_minutes') or 0), False
    return (lambda item: item.get('relevance_score') or 0), True


def rank_items(items: Iterable[Dict[str, Any]], profile: UserProfile,
               weights: RelevanceWeights, sort_by: str = 'relevance',
               now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Score every item and sort; ties keep the input order"""
    now = now or datetime.utcnow()
    scored = [score_item(item, profile, weights, now) for item in items]
    key, reverse = _sort_key(sort_by if sort_by in SORT_OPTIONS else 'relevance')
    return sorted(scored, key=key, reverse=reverse)


def filter_items(items: Iterable[Dict[str, Any]], search: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive substring match on title, description, or tags"""
    items = list(items)
    if not search or not search.strip():
        return items
    needle = search.strip().lower()
    return [item for item in items if _text_contains(item, _lower_tags(item), needle)]
