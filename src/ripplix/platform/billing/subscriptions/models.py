"""
Subscription domain models.

``SubscriptionState`` is the read side of the membership fields embedded on a
user row; the result models summarise expiry runs for the CLI and scheduler.
"""

import math
from datetime import datetime, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict, Field

from ripplix.platform.billing.plans.models import BillingPeriod, Plan
from ripplix.platform.user_management.models import UserTable

SECONDS_PER_DAY = 86_400


def compute_expiry(plan: Plan, start: datetime) -> datetime | None:
    """Expiry for a period of ``plan`` starting at ``start``; ``None`` if it never expires."""
    if plan.billing_period == BillingPeriod.MONTHLY:
        return start + relativedelta(months=1)
    if plan.billing_period == BillingPeriod.YEARLY:
        return start + relativedelta(years=1)
    return None


class SubscriptionState(BaseModel):
    """Snapshot of a user's plan assignment."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    plan_id: int | None = None
    started_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_user(cls, user: UserTable) -> "SubscriptionState":
        return cls(
            user_id=user.id,
            plan_id=user.pricing_plan_id,
            started_at=user.plan_updated_at,
            expires_at=user.plan_expires_at,
        )

    def is_expired(self, now: datetime) -> bool:
        """A null expiry never expires."""
        return self.expires_at is not None and self.expires_at < now

    def expires_soon(self, now: datetime, threshold_days: int = 7) -> bool:
        if self.expires_at is None:
            return False
        return now <= self.expires_at <= now + timedelta(days=threshold_days)

    def days_until_expiry(self, now: datetime) -> int | None:
        """Whole days left, rounded up and never negative."""
        if self.expires_at is None:
            return None
        remaining = (self.expires_at - now).total_seconds()
        if remaining <= 0:
            return 0
        return math.ceil(remaining / SECONDS_PER_DAY)


class ExpiryRunResult(BaseModel):
    """Aggregate outcome of one expiry run.

    ``downgraded + failed == total``; candidates left untouched because the
    run hit its deadline are counted in ``pending`` and not in ``total``.
    """

    total: int = 0
    downgraded: int = 0
    failed: int = 0
    pending: int = 0
    failed_user_ids: list[int] = Field(default_factory=list)


class SubscriptionAnalytics(BaseModel):
    """Read-only membership counts as of ``as_of``."""

    as_of: datetime
    active_paid: int = 0
    expiring_soon: int = 0
    expired_pending_downgrade: int = 0
    monthly_subscribers: int = 0
    yearly_subscribers: int = 0
    lifetime_subscribers: int = 0
    free_members: int = 0


class NotificationResult(BaseModel):
    """Outcome of an expiry notification pass."""

    sent: int = 0
    failed: int = 0


class RevenueSummary(BaseModel):
    """Monthly recurring revenue from non-expired subscribers."""

    as_of: datetime
    monthly_recurring_revenue: Decimal = Decimal("0")
    currency: str = "USD"


__all__ = [
    "ExpiryRunResult",
    "NotificationResult",
    "RevenueSummary",
    "SubscriptionAnalytics",
    "SubscriptionState",
    "compute_expiry",
]
