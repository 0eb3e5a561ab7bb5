"""
Board entitlements.

Answers capacity questions for the board surface from a user's effective
plan. Never raises and never writes: a user without a usable plan gets the
free plan's limits, and if even that plan is missing, nothing at all.
"""

from pydantic import BaseModel, ConfigDict, Field

from ripplix.platform.billing.plans.catalog import PlanCatalog
from ripplix.platform.billing.plans.models import Plan, PlanLimits, Unlimited
from ripplix.platform.billing.subscriptions.models import SubscriptionState
from ripplix.platform.settings import settings


class PlanLimitsSummary(BaseModel):
    """Limits and current usage, as shown next to the board list."""

    model_config = ConfigDict(frozen=True)

    plan_slug: str | None
    plan_name: str | None
    max_boards: int | None
    max_items_per_board: int | None
    boards_used: int
    boards_remaining: int | None
    can_share: bool
    is_fallback: bool
    upgrade_suggestions: list[str] = Field(default_factory=list)


class EntitlementGate:
    """Pure capacity checks over a :class:`PlanCatalog`."""

    def __init__(self, catalog: PlanCatalog, free_plan_slug: str | None = None) -> None:
        self.catalog = catalog
        self.free_plan_slug = free_plan_slug or settings.subscriptions.free_plan_slug

    def effective_plan(self, state: SubscriptionState | None) -> Plan | None:
        """The user's active plan, else the free plan, else ``None``."""
        plan = self.catalog.find_by_id(state.plan_id) if state is not None else None
        return plan or self.catalog.find_by_slug(self.free_plan_slug)

    def limits_for(self, state: SubscriptionState | None) -> PlanLimits:
        plan = self.effective_plan(state)
        if plan is None:
            return PlanLimits.closed()
        return self.catalog.limits_for(plan)

    def can_create_board(self, state: SubscriptionState | None, board_count: int) -> bool:
        return self.limits_for(state).max_boards.allows(board_count)

    def can_add_item(self, state: SubscriptionState | None, item_count: int) -> bool:
        return self.limits_for(state).max_items_per_board.allows(item_count)

    def can_share(self, state: SubscriptionState | None) -> bool:
        return self.limits_for(state).can_share

    def summary(self, state: SubscriptionState | None, board_count: int) -> PlanLimitsSummary:
        plan = self.effective_plan(state)
        limits = self.catalog.limits_for(plan) if plan is not None else PlanLimits.closed()
        own_plan = self.catalog.find_by_id(state.plan_id) if state is not None else None

        if isinstance(limits.max_boards, Unlimited):
            max_boards = None
            remaining = None
        else:
            max_boards = limits.max_boards.limit
            remaining = max(0, max_boards - board_count)

        max_items = None
        if not isinstance(limits.max_items_per_board, Unlimited):
            max_items = limits.max_items_per_board.limit

        suggestions = self.catalog.upgrade_suggestions(plan) if plan is not None else []
        return PlanLimitsSummary(
            plan_slug=plan.slug if plan is not None else None,
            plan_name=plan.name if plan is not None else None,
            max_boards=max_boards,
            max_items_per_board=max_items,
            boards_used=board_count,
            boards_remaining=remaining,
            can_share=limits.can_share,
            is_fallback=own_plan is None,
            upgrade_suggestions=[suggestion.slug for suggestion in suggestions],
        )
