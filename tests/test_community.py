import pytest
from datetime import datetime, timedelta
from talentika.models import CommunityChallenge, UserChallenge
from talentika.utils import community
from talentika.utils.error_handlers import RecordNotFound, ValidationError


@pytest.fixture
def challenge(db_session):
    row = CommunityChallenge(title='30 Hari Ngoding', challenge_type='monthly', xp_reward=300,
                             start_date=datetime(2026, 3, 1), end_date=datetime(2026, 3, 31))
    db_session.add(row)
    db_session.commit()
    return row


class TestChallenges:
    def test_listing_marks_own_participation(self, db_session, test_user, premium_user, challenge):
        older = CommunityChallenge(title='Minggu CV', start_date=datetime(2026, 2, 1))
        hidden = CommunityChallenge(title='Arsip', start_date=datetime(2026, 4, 1), is_active=False)
        db_session.add_all([older, hidden])
        db_session.commit()
        community.join_challenge(premium_user, challenge.id, now=datetime(2026, 3, 2))

        items = community.challenges_for_user(test_user)
        assert [item['title'] for item in items] == ['30 Hari Ngoding', 'Minggu CV']
        assert items[0]['participants'] == 1
        assert items[0]['joined'] is False
        assert items[0]['participation'] is None

        mine = community.challenges_for_user(premium_user)[0]
        assert mine['joined'] is True
        assert mine['participation']['status'] == 'joined'

    def test_join_once(self, test_user, challenge):
        joined = community.join_challenge(test_user, challenge.id, now=datetime(2026, 3, 2))
        assert joined.score == 0
        with pytest.raises(ValidationError) as exc:
            community.join_challenge(test_user, challenge.id, now=datetime(2026, 3, 3))
        assert exc.value.message == 'You have already joined this challenge.'
        assert UserChallenge.query.count() == 1

    def test_ended_challenge(self, test_user, challenge):
        with pytest.raises(ValidationError) as exc:
            community.join_challenge(test_user, challenge.id, now=challenge.end_date + timedelta(days=1))
        assert exc.value.message == 'This challenge has ended.'

    def test_full_challenge(self, db_session, test_user, premium_user, challenge):
        challenge.max_participants = 1
        db_session.commit()
        community.join_challenge(premium_user, challenge.id, now=datetime(2026, 3, 2))
        with pytest.raises(ValidationError) as exc:
            community.join_challenge(test_user, challenge.id, now=datetime(2026, 3, 2))
        assert exc.value.message == 'This challenge is full.'

    def test_missing_or_inactive(self, db_session, test_user, challenge):
        with pytest.raises(RecordNotFound):
            community.join_challenge(test_user, 9999)
        challenge.is_active = False
        db_session.commit()
        with pytest.raises(RecordNotFound):
            community.join_challenge(test_user, challenge.id, now=datetime(2026, 3, 2))
