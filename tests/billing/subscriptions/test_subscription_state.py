"""
Tests for subscription state predicates and expiry arithmetic.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from ripplix.platform.billing.plans import BillingPeriod, Limited, Plan
from ripplix.platform.billing.subscriptions import SubscriptionState, compute_expiry

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def plan_with(period: BillingPeriod) -> Plan:
    return Plan(
        id=1,
        slug=f"plan-{period.value}",
        name=period.value.title(),
        price=Decimal("0") if period == BillingPeriod.FREE else Decimal("10"),
        billing_period=period,
        max_boards=Limited(limit=3),
        max_items_per_board=Limited(limit=6),
    )


class TestComputeExpiry:
    """Test period arithmetic."""

    @pytest.mark.parametrize("period", [BillingPeriod.FREE, BillingPeriod.LIFETIME])
    def test_non_expiring_periods(self, period):
        assert compute_expiry(plan_with(period), NOW) is None

    def test_monthly_adds_one_month(self):
        start = datetime(2024, 1, 1, tzinfo=UTC)
        assert compute_expiry(plan_with(BillingPeriod.MONTHLY), start) == datetime(
            2024, 2, 1, tzinfo=UTC
        )

    def test_monthly_clamps_to_month_end(self):
        start = datetime(2024, 1, 31, 9, 30, tzinfo=UTC)
        assert compute_expiry(plan_with(BillingPeriod.MONTHLY), start) == datetime(
            2024, 2, 29, 9, 30, tzinfo=UTC
        )

    def test_yearly_adds_one_year(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)
        assert compute_expiry(plan_with(BillingPeriod.YEARLY), start) == datetime(
            2025, 3, 1, tzinfo=UTC
        )


class TestSubscriptionState:
    """Test derived predicates."""

    def test_null_expiry_never_expired(self):
        state = SubscriptionState(user_id=1, plan_id=2)
        assert state.is_expired(NOW) is False
        assert state.is_expired(datetime.max.replace(tzinfo=UTC)) is False

    def test_past_expiry_is_expired(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW - timedelta(seconds=1))
        assert state.is_expired(NOW) is True

    def test_expiry_equal_to_now_not_expired(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW)
        assert state.is_expired(NOW) is False

    def test_expires_soon_within_threshold(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW + timedelta(days=3))
        assert state.expires_soon(NOW) is True
        assert state.expires_soon(NOW, threshold_days=2) is False

    def test_expires_soon_excludes_past_and_null(self):
        past = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW - timedelta(hours=1))
        never = SubscriptionState(user_id=1, plan_id=2)
        assert past.expires_soon(NOW) is False
        assert never.expires_soon(NOW) is False

    def test_expires_soon_boundary_inclusive(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW + timedelta(days=7))
        assert state.expires_soon(NOW) is True

    def test_days_until_expiry_rounds_up(self):
        state = SubscriptionState(
            user_id=1, plan_id=3, expires_at=NOW + timedelta(days=2, hours=1)
        )
        assert state.days_until_expiry(NOW) == 3

    def test_days_until_expiry_exact_days(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW + timedelta(days=2))
        assert state.days_until_expiry(NOW) == 2

    def test_days_until_expiry_clamped(self):
        state = SubscriptionState(user_id=1, plan_id=3, expires_at=NOW - timedelta(days=4))
        assert state.days_until_expiry(NOW) == 0

    def test_days_until_expiry_null(self):
        assert SubscriptionState(user_id=1).days_until_expiry(NOW) is None
