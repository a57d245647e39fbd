import pytest
from datetime import date, datetime
from unittest.mock import patch
from talentika.models import Mentor, MentorshipSession
from talentika.utils import mentorship
from talentika.utils.error_handlers import PermissionDenied, RecordNotFound, ValidationError

NOW = datetime(2026, 6, 10, 8, 0)


@pytest.fixture
def mentor(db_session):
    row = Mentor(name='Dr. Rina', title='Career Coach', rating=4.8, is_available=True)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture(autouse=True)
def no_mail():
    with patch('talentika.utils.mentorship.send_email', return_value=True) as send:
        yield send


class TestSlots:
    def test_half_hour_slots(self):
        slots = mentorship.available_time_slots()
        assert slots[0] == '09:00'
        assert slots[-1] == '16:30'
        assert len(slots) == 16

    def test_available_mentors_ordered_by_rating(self, db_session, mentor):
        db_session.add(Mentor(name='Budi', title='Engineer', rating=4.9, is_available=True))
        db_session.add(Mentor(name='Off', title='Away', rating=5.0, is_available=False))
        db_session.commit()
        assert [m.name for m in mentorship.available_mentors()] == ['Budi', 'Dr. Rina']


class TestPlan:
    def test_user_plan(self, test_user, premium_user):
        assert mentorship.user_plan(test_user) == 'individual'
        assert mentorship.user_plan(premium_user) == 'premium'


class TestBooking:
    def test_books_consultation_and_sends_mail(self, test_user, mentor, no_mail):
        session = mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:30', now=NOW)
        assert session.session_date == datetime(2026, 6, 15, 10, 30)
        assert session.duration_minutes == 60
        assert session.status == 'scheduled'
        no_mail.assert_called_once()
        assert no_mail.call_args[0][1] == [test_user.email]

    def test_individual_plan_monthly_limit(self, test_user, mentor):
        mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        with pytest.raises(PermissionDenied):
            mentorship.book_session(test_user, mentor.id, '2026-06-20', '10:00', now=NOW)
        # A different calendar month is fine
        mentorship.book_session(test_user, mentor.id, '2026-07-01', '10:00', now=NOW)

    def test_cancelled_session_frees_the_month(self, test_user, mentor):
        first = mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        mentorship.cancel_session(test_user, first.id)
        mentorship.book_session(test_user, mentor.id, '2026-06-16', '10:00', now=NOW)

    def test_premium_is_unlimited_and_can_book_mentorship(self, premium_user, mentor):
        mentorship.book_session(premium_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        session = mentorship.book_session(premium_user, mentor.id, '2026-06-16', '11:00',
                                          session_type='mentorship', now=NOW)
        assert session.duration_minutes == 90

    def test_mentorship_requires_premium(self, test_user, mentor):
        with pytest.raises(PermissionDenied):
            mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00',
                                    session_type='mentorship', now=NOW)

    @pytest.mark.parametrize('session_date, time_slot', [
        ('2026-06-10', '10:00'),
        ('2026-06-01', '10:00'),
        ('2026-06-15', '08:00'),
        ('2026-06-15', '10:15'),
        ('not-a-date', '10:00'),
    ])
    def test_rejects_bad_date_or_slot(self, test_user, mentor, session_date, time_slot):
        with pytest.raises(ValidationError):
            mentorship.book_session(test_user, mentor.id, session_date, time_slot, now=NOW)

    def test_unavailable_mentor(self, db_session, test_user, mentor):
        mentor.is_available = False
        db_session.commit()
        with pytest.raises(RecordNotFound):
            mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00', now=NOW)

    def test_missing_fields(self, test_user):
        with pytest.raises(ValidationError):
            mentorship.book_session(test_user, None, '2026-06-15', '10:00', now=NOW)

    def test_mail_failure_keeps_booking(self, test_user, mentor, no_mail):
        no_mail.return_value = False
        mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        assert MentorshipSession.query.count() == 1


class TestCancel:
    def test_only_owner_can_cancel(self, test_user, premium_user, mentor):
        session = mentorship.book_session(test_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        with pytest.raises(PermissionDenied):
            mentorship.cancel_session(premium_user, session.id)
        assert mentorship.cancel_session(test_user, session.id).status == 'cancelled'

    def test_missing_session(self, test_user):
        with pytest.raises(RecordNotFound):
            mentorship.cancel_session(test_user, 404)

    def test_user_sessions_newest_first(self, premium_user, mentor):
        mentorship.book_session(premium_user, mentor.id, '2026-06-15', '10:00', now=NOW)
        mentorship.book_session(premium_user, mentor.id, '2026-06-20', '10:00', now=NOW)
        dates = [s.session_date.day for s in mentorship.user_sessions(premium_user)]
        assert dates == [20, 15]
