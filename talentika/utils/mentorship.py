"""
Mentorship Booking

FLOW OVERVIEW
- available_mentors(): mentors open for booking, best rated first.
- available_time_slots(): 09:00 … 16:30 every 30 minutes.
- book_session(user, mentor_id, session_date, time_slot, session_type, notes)
  • Date must lie in the future; slot must be one of the offered slots.
  • consultation: 60 minutes. mentorship: 90 minutes, premium plan only.
  • Non-premium plans: one non-cancelled session per calendar month.
  • Sends a confirmation e-mail; a mail failure is logged and does not undo the booking.
- user_sessions(user) / cancel_session(user, session_id).
"""

import logging
from datetime import date, datetime, time
from typing import List, Optional

from ..models import db, Mentor, MentorshipSession
from .auth_utils import send_email
from .error_handlers import PermissionDenied, RecordNotFound, ValidationError

logger = logging.getLogger(__name__)

SESSION_DURATIONS = {'consultation': 60, 'mentorship': 90}
FIRST_SLOT_HOUR = 9
LAST_SLOT_HOUR = 17
MONTHLY_SESSION_LIMIT = 1


def available_time_slots() -> List[str]:
    slots = []
    for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_HOUR):
        slots.append(f"{hour:02d}:00")
        slots.append(f"{hour:02d}:30")
    return slots


def available_mentors() -> List[Mentor]:
    return (
        Mentor.query
        .filter_by(is_available=True)
        .order_by(Mentor.rating.desc(), Mentor.name)
        .all()
    )


def user_plan(user) -> str:
    """'premium' gets unlimited sessions; every other plan is treated as individual"""
    if user.has_active_subscription() and (user.subscription_type or '').lower() == 'premium':
        return 'premium'
    return 'individual'


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("Invalid session date.")


def _sessions_in_month(user_id: int, year: int, month: int) -> int:
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return (
        MentorshipSession.query
        .filter(MentorshipSession.user_id == user_id,
                MentorshipSession.status != 'cancelled',
                MentorshipSession.session_date >= start,
                MentorshipSession.session_date < end)
        .count()
    )


def book_session(user, mentor_id, session_date, time_slot: str,
                 session_type: str = 'consultation', notes: Optional[str] = None,
                 now: Optional[datetime] = None) -> MentorshipSession:
    """
    Book one session with a mentor.

    Args:
        user: Booking user
        mentor_id: Mentor row id
        session_date: ISO date (YYYY-MM-DD) or date
        time_slot: One of available_time_slots()
        session_type: consultation or mentorship
        notes: Free text for the mentor

    Returns:
        The scheduled MentorshipSession
    """
    now = now or datetime.utcnow()
    if not mentor_id or not session_date or not time_slot:
        raise ValidationError("Please choose a mentor, date, and time.")

    mentor = db.session.get(Mentor, mentor_id)
    if mentor is None or not mentor.is_available:
        raise RecordNotFound("Mentor not found or unavailable.")

    if session_type not in SESSION_DURATIONS:
        raise ValidationError("Unknown session type.")

    plan = user_plan(user)
    if session_type == 'mentorship' and plan != 'premium':
        raise PermissionDenied("Intensive mentorship sessions require the Premium plan.")

    if time_slot not in available_time_slots():
        raise ValidationError("Please choose one of the available time slots.")

    day = _parse_date(session_date)
    if day <= now.date():
        raise ValidationError("Sessions can only be booked for a future date.")

    hours, minutes = (int(part) for part in time_slot.split(':'))
    starts_at = datetime.combine(day, time(hours, minutes))

    if plan != 'premium' and _sessions_in_month(user.id, day.year, day.month) >= MONTHLY_SESSION_LIMIT:
        raise PermissionDenied(
            "The Individual plan includes one consultation per month. Upgrade to Premium for unlimited sessions."
        )

    session = MentorshipSession(
        user_id=user.id,
        mentor_id=mentor.id,
        session_type=session_type,
        session_date=starts_at,
        duration_minutes=SESSION_DURATIONS[session_type],
        status='scheduled',
        notes=notes,
    )
    db.session.add(session)
    db.session.commit()
    logger.info(f"Session {session.id} booked: user {user.id} with mentor {mentor.id} at {starts_at.isoformat()}")

    send_email(
        'Your mentorship session is booked',
        [user.email],
        f"Your {session_type} with {mentor.name} is scheduled for "
        f"{starts_at.strftime('%A, %d %B %Y %H:%M')} ({session.duration_minutes} minutes).",
    )
    return session


def user_sessions(user) -> List[MentorshipSession]:
    return (
        MentorshipSession.query
        .filter_by(user_id=user.id)
        .order_by(MentorshipSession.session_date.desc())
        .all()
    )


def cancel_session(user, session_id) -> MentorshipSession:
    session = db.session.get(MentorshipSession, session_id)
    if session is None:
        raise RecordNotFound("Session not found.")
    if session.user_id != user.id:
        raise PermissionDenied("You can only cancel your own sessions.")
    if session.status == 'cancelled':
        return session
    session.status = 'cancelled'
    db.session.commit()
    logger.info(f"Session {session.id} cancelled by user {user.id}")
    return session
