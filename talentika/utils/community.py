"""
Community Challenges

FLOW OVERVIEW
- challenges_for_user(user): active challenges, newest start first, each with the
  participant count and the user's own participation (`joined`, `participation`).
- join_challenge(user, challenge_id, now)
  • Unknown or inactive challenge → RecordNotFound.
  • Ended, full, or already joined → ValidationError.
  • Inserts a `user_challenges` row with status `joined`.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from ..models import db, CommunityChallenge, UserChallenge
from .backend import BackendClient
from .error_handlers import RecordNotFound, ValidationError

logger = logging.getLogger(__name__)


def _participant_counts() -> Dict[int, int]:
    rows = (
        db.session.query(UserChallenge.challenge_id, func.count(UserChallenge.id))
        .group_by(UserChallenge.challenge_id)
        .all()
    )
    return dict(rows)


def challenges_for_user(user) -> List[Dict[str, Any]]:
    challenges = (
        CommunityChallenge.query
        .filter_by(is_active=True)
        .order_by(CommunityChallenge.start_date.desc(), CommunityChallenge.created_at.desc())
        .all()
    )
    mine = {row.challenge_id: row for row in UserChallenge.query.filter_by(user_id=user.id).all()}
    counts = _participant_counts()

    items = []
    for challenge in challenges:
        item = challenge.to_dict()
        participation = mine.get(challenge.id)
        item['participants'] = counts.get(challenge.id, 0)
        item['joined'] = participation is not None
        item['participation'] = participation.to_dict() if participation else None
        items.append(item)
    return items


def join_challenge(user, challenge_id, now: Optional[datetime] = None) -> UserChallenge:
    now = now or datetime.utcnow()
    challenge = db.session.get(CommunityChallenge, challenge_id)
    if challenge is None or not challenge.is_active:
        raise RecordNotFound("Challenge not found.")
    if challenge.end_date and challenge.end_date < now:
        raise ValidationError("This challenge has ended.")

    if UserChallenge.query.filter_by(user_id=user.id, challenge_id=challenge.id).first() is not None:
        raise ValidationError("You have already joined this challenge.")

    if challenge.max_participants and \
            _participant_counts().get(challenge.id, 0) >= challenge.max_participants:
        raise ValidationError("This challenge is full.")

    joined = BackendClient().insert('user_challenges', {
        'user_id': user.id,
        'challenge_id': challenge.id,
        'status': 'joined',
        'score': 0,
    })
    logger.info(f"User {user.id} joined challenge {challenge.id}")
    return joined
