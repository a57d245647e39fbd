"""
Subscription Limits and Activation

FLOW OVERVIEW
- get_subscription_limits(status, type) → SubscriptionLimits
  • Active subscription: unlimited (-1) courses/opportunities, premium content.
  • Otherwise the free tier: 3 courses, 5 opportunities, no premium content.
- check_subscription_access(item_count, limit, status) → (can_access, limit_reached)
- effective_status(user): 'active' only while the subscription has not expired.
- activate_subscription(user, package, billing_cycle, amount_paid, payment_method)
  • Upserts the user's single UserSubscription row (1 or 12 months).
  • An unexpired subscription is extended from its current expiry.
  • Mirrors status/type/end date onto the user profile. Caller commits.
"""

import calendar
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Tuple

from ..models import db, UserSubscription

logger = logging.getLogger(__name__)

UNLIMITED = -1
FREE_MAX_COURSES = 3
FREE_MAX_OPPORTUNITIES = 5
BILLING_MONTHS = {'monthly': 1, 'yearly': 12}


@dataclass
class SubscriptionLimits:
    max_courses: int
    max_opportunities: int
    can_access_premium_content: bool

    def to_dict(self):
        return asdict(self)


def get_subscription_limits(subscription_status: Optional[str],
                            subscription_type: Optional[str] = None) -> SubscriptionLimits:
    if subscription_status == 'active':
        return SubscriptionLimits(UNLIMITED, UNLIMITED, True)
    return SubscriptionLimits(FREE_MAX_COURSES, FREE_MAX_OPPORTUNITIES, False)


def check_subscription_access(item_count: int, limit: int,
                              subscription_status: Optional[str]) -> Tuple[bool, bool]:
    """(can_access, is_limit_reached) for opening one more item"""
    if subscription_status == 'active' or limit == UNLIMITED:
        return True, False
    limit_reached = item_count >= limit
    return not limit_reached, limit_reached


def effective_status(user) -> str:
    if user is None:
        return 'inactive'
    return 'active' if user.has_active_subscription() else 'inactive'


def add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day (Jan 31 + 1 month → Feb 28/29)"""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def activate_subscription(user, package, billing_cycle: str = 'monthly',
                          amount_paid: float = 0, payment_method: Optional[str] = None,
                          now: Optional[datetime] = None) -> UserSubscription:
    now = now or datetime.utcnow()
    months = BILLING_MONTHS.get(billing_cycle, 1)

    subscription = UserSubscription.query.filter_by(user_id=user.id).first()
    start = now
    if subscription is not None and subscription.status == 'active' \
            and subscription.expires_at and subscription.expires_at > now:
        start = subscription.expires_at
    expires_at = add_months(start, months)

    if subscription is None:
        subscription = UserSubscription(user_id=user.id, starts_at=now)
        db.session.add(subscription)
    elif subscription.status != 'active' or not subscription.expires_at or subscription.expires_at <= now:
        subscription.starts_at = now

    subscription.package_id = package.id
    subscription.status = 'active'
    subscription.billing_cycle = billing_cycle if billing_cycle in BILLING_MONTHS else 'monthly'
    subscription.amount_paid = amount_paid
    subscription.payment_method = payment_method
    subscription.expires_at = expires_at

    user.subscription_status = 'active'
    user.subscription_type = package.type
    user.subscription_end_date = expires_at

    logger.info(f"Subscription {package.name} active for user {user.id} until {expires_at.isoformat()}")
    return subscription
