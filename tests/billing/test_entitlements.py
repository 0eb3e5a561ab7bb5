"""
Tests for board entitlements and the free-plan fallback.
"""

from decimal import Decimal

import pytest

from ripplix.platform.billing.entitlements import EntitlementGate
from ripplix.platform.billing.plans import (
    BillingPeriod,
    Limited,
    Plan,
    PlanCatalog,
    PlanLimits,
    Unlimited,
)
from ripplix.platform.billing.subscriptions import SubscriptionState

FREE = Plan(
    id=1,
    slug="free-member",
    name="Free Member",
    billing_period=BillingPeriod.FREE,
    max_boards=Limited(limit=3),
    max_items_per_board=Limited(limit=6),
    sort_order=1,
)
PRO = Plan(
    id=2,
    slug="pro-monthly",
    name="Pro Monthly",
    price=Decimal("9.99"),
    billing_period=BillingPeriod.MONTHLY,
    max_boards=Unlimited(),
    max_items_per_board=Unlimited(),
    can_share=True,
    sort_order=2,
)
LIFETIME = Plan(
    id=3,
    slug="lifetime-pro",
    name="Lifetime Pro",
    price=Decimal("249.00"),
    billing_period=BillingPeriod.LIFETIME,
    max_boards=Unlimited(),
    max_items_per_board=Unlimited(),
    can_share=True,
    sort_order=3,
)
RETIRED = Plan(
    id=4,
    slug="legacy-pro",
    name="Legacy Pro",
    price=Decimal("5.00"),
    billing_period=BillingPeriod.MONTHLY,
    max_boards=Limited(limit=50),
    max_items_per_board=Limited(limit=50),
    can_share=True,
    is_active=False,
)


@pytest.fixture
def gate():
    return EntitlementGate(PlanCatalog([FREE, PRO, LIFETIME, RETIRED]), free_plan_slug="free-member")


def state_on(plan_id: int | None) -> SubscriptionState:
    return SubscriptionState(user_id=7, plan_id=plan_id)


class TestFreePlanFallback:
    """Test resolution of the effective plan."""

    def test_user_without_plan_gets_free_limits(self, gate):
        state = state_on(None)

        assert gate.effective_plan(state) == FREE
        assert gate.can_create_board(state, 0) is True
        assert gate.can_create_board(state, 2) is True
        assert gate.can_create_board(state, 3) is False

    def test_unknown_plan_falls_back(self, gate):
        assert gate.effective_plan(state_on(999)) == FREE

    def test_inactive_plan_falls_back(self, gate):
        state = state_on(RETIRED.id)

        assert gate.effective_plan(state) == FREE
        assert gate.can_create_board(state, 10) is False
        assert gate.can_share(state) is False

    def test_missing_state_falls_back(self, gate):
        assert gate.effective_plan(None) == FREE

    def test_missing_free_plan_grants_nothing(self):
        gate = EntitlementGate(PlanCatalog([PRO]), free_plan_slug="free-member")
        state = state_on(None)

        assert gate.effective_plan(state) is None
        assert gate.limits_for(state) == PlanLimits.closed()
        assert gate.can_create_board(state, 0) is False
        assert gate.can_add_item(state, 0) is False
        assert gate.can_share(state) is False


class TestCapacityChecks:
    """Test board and item limits."""

    @pytest.mark.parametrize("count", [0, 1, 10_000, 2_147_483_646])
    def test_unlimited_always_allows(self, gate, count):
        state = state_on(PRO.id)

        assert gate.can_create_board(state, count) is True
        assert gate.can_add_item(state, count) is True

    def test_item_limit_per_board(self, gate):
        state = state_on(FREE.id)

        assert gate.can_add_item(state, 5) is True
        assert gate.can_add_item(state, 6) is False

    def test_sharing(self, gate):
        assert gate.can_share(state_on(LIFETIME.id)) is True
        assert gate.can_share(state_on(FREE.id)) is False


class TestSummary:
    """Test the limits summary shown next to the board list."""

    def test_free_user_summary(self, gate):
        summary = gate.summary(state_on(FREE.id), board_count=2)

        assert summary.plan_slug == "free-member"
        assert summary.max_boards == 3
        assert summary.max_items_per_board == 6
        assert summary.boards_used == 2
        assert summary.boards_remaining == 1
        assert summary.is_fallback is False
        assert summary.upgrade_suggestions == ["pro-monthly", "lifetime-pro"]

    def test_over_limit_remaining_clamped(self, gate):
        summary = gate.summary(state_on(FREE.id), board_count=5)

        assert summary.boards_remaining == 0

    def test_unlimited_summary(self, gate):
        summary = gate.summary(state_on(PRO.id), board_count=40)

        assert summary.max_boards is None
        assert summary.max_items_per_board is None
        assert summary.boards_remaining is None
        assert summary.can_share is True
        assert summary.upgrade_suggestions == ["lifetime-pro"]

    def test_fallback_summary(self, gate):
        summary = gate.summary(state_on(None), board_count=0)

        assert summary.plan_slug == "free-member"
        assert summary.is_fallback is True

    def test_summary_without_any_plan(self):
        gate = EntitlementGate(PlanCatalog([]), free_plan_slug="free-member")

        summary = gate.summary(None, board_count=0)

        assert summary.plan_slug is None
        assert summary.max_boards == 0
        assert summary.boards_remaining == 0
        assert summary.upgrade_suggestions == []
