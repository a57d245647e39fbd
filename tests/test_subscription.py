import pytest
from datetime import datetime, timedelta
from types import SimpleNamespace
from talentika.models import UserSubscription
from talentika.utils.subscription import (
    FREE_MAX_COURSES, FREE_MAX_OPPORTUNITIES, UNLIMITED, activate_subscription, add_months,
    check_subscription_access, effective_status, get_subscription_limits
)


class TestLimits:
    def test_free_limits(self):
        limits = get_subscription_limits('inactive')
        assert limits.max_courses == FREE_MAX_COURSES
        assert limits.max_opportunities == FREE_MAX_OPPORTUNITIES
        assert limits.can_access_premium_content is False

    def test_active_is_unlimited(self):
        limits = get_subscription_limits('active', 'individual')
        assert limits.max_courses == UNLIMITED
        assert limits.to_dict()['can_access_premium_content'] is True

    def test_check_access(self):
        assert check_subscription_access(2, 3, 'inactive') == (True, False)
        assert check_subscription_access(3, 3, 'inactive') == (False, True)
        assert check_subscription_access(50, 3, 'active') == (True, False)
        assert check_subscription_access(50, UNLIMITED, None) == (True, False)


class TestEffectiveStatus:
    def test_expired_subscription_is_inactive(self):
        user = SimpleNamespace(has_active_subscription=lambda: False)
        assert effective_status(user) == 'inactive'
        assert effective_status(None) == 'inactive'

    def test_user_model(self, premium_user, test_user):
        assert effective_status(premium_user) == 'active'
        assert effective_status(test_user) == 'inactive'


class TestAddMonths:
    def test_clamps_day(self):
        assert add_months(datetime(2026, 1, 31), 1) == datetime(2026, 2, 28)
        assert add_months(datetime(2028, 1, 31), 1) == datetime(2028, 2, 29)

    def test_crosses_year(self):
        assert add_months(datetime(2026, 11, 15), 12) == datetime(2027, 11, 15)
        assert add_months(datetime(2026, 12, 1), 1) == datetime(2027, 1, 1)


class TestActivate:
    def test_new_subscription(self, db_session, test_user, premium_plan):
        now = datetime(2026, 3, 10)
        subscription = activate_subscription(test_user, premium_plan, 'monthly', 100000, 'e_wallet', now=now)
        db_session.commit()
        assert subscription.expires_at == datetime(2026, 4, 10)
        assert test_user.subscription_status == 'active'
        assert test_user.subscription_type == 'premium'
        assert test_user.subscription_end_date == datetime(2026, 4, 10)

    def test_renewal_extends_from_current_expiry(self, db_session, test_user, premium_plan):
        now = datetime(2026, 3, 10)
        activate_subscription(test_user, premium_plan, 'monthly', now=now)
        db_session.commit()
        subscription = activate_subscription(test_user, premium_plan, 'yearly', now=now + timedelta(days=5))
        db_session.commit()
        assert subscription.expires_at == datetime(2027, 4, 10)
        assert subscription.starts_at == now
        assert UserSubscription.query.count() == 1

    def test_lapsed_subscription_restarts(self, db_session, test_user, premium_plan):
        activate_subscription(test_user, premium_plan, 'monthly', now=datetime(2025, 1, 1))
        db_session.commit()
        now = datetime(2026, 3, 10)
        subscription = activate_subscription(test_user, premium_plan, 'monthly', now=now)
        assert subscription.starts_at == now
        assert subscription.expires_at == datetime(2026, 4, 10)
