"""
Subscription service.

Owns the only write path for a user's plan fields. Every component that
changes ``pricing_plan_id``/``plan_updated_at``/``plan_expires_at`` goes
through :meth:`SubscriptionService.apply_plan` so the billing-period
invariant is checked in one place.
"""

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.exceptions import (
    InvalidSubscriptionPeriodError,
    SubscriptionUpdateError,
)
from ripplix.platform.billing.plans.models import Plan
from ripplix.platform.billing.subscriptions.models import SubscriptionState, compute_expiry
from ripplix.platform.user_management.models import UserTable

logger = structlog.get_logger(__name__)


def validate_period(plan: Plan, start_at: datetime, expires_at: datetime | None) -> None:
    """Raise :class:`InvalidSubscriptionPeriodError` if the expiry contradicts the plan."""
    if not plan.has_expiry and expires_at is not None:
        raise InvalidSubscriptionPeriodError(
            f"Plan '{plan.slug}' ({plan.billing_period.value}) cannot carry an expiry date",
            plan_slug=plan.slug,
            billing_period=plan.billing_period.value,
        )
    if plan.has_expiry and expires_at is None:
        raise InvalidSubscriptionPeriodError(
            f"Plan '{plan.slug}' ({plan.billing_period.value}) requires an expiry date",
            plan_slug=plan.slug,
            billing_period=plan.billing_period.value,
        )
    if expires_at is not None and expires_at < start_at:
        raise InvalidSubscriptionPeriodError(
            f"Expiry {expires_at.isoformat()} precedes start {start_at.isoformat()}",
            plan_slug=plan.slug,
            billing_period=plan.billing_period.value,
        )


class SubscriptionService:
    """Plan assignment for a single user inside the caller's transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def apply_plan(
        self,
        user: UserTable,
        plan: Plan,
        start_at: datetime,
        expires_at: datetime | None,
    ) -> SubscriptionState:
        """
        Assign ``plan`` to ``user``.

        Args:
            user: User row loaded in this session
            plan: Plan to assign
            start_at: Start of the new period
            expires_at: End of the period, ``None`` for free/lifetime plans

        Returns:
            The resulting subscription state

        Raises:
            InvalidSubscriptionPeriodError: expiry contradicts the billing period
            SubscriptionUpdateError: the row could not be written
        """
        validate_period(plan, start_at, expires_at)

        previous_plan_id = user.pricing_plan_id
        user.pricing_plan_id = plan.id
        user.plan_updated_at = start_at
        user.plan_expires_at = expires_at

        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise SubscriptionUpdateError(
                f"Failed to update plan for user {user.id}: {e}", user_id=user.id
            ) from e

        logger.info(
            "subscription.plan_applied",
            user_id=user.id,
            previous_plan_id=previous_plan_id,
            plan_id=plan.id,
            plan_slug=plan.slug,
            started_at=start_at.isoformat(),
            expires_at=expires_at.isoformat() if expires_at else None,
        )
        return SubscriptionState.from_user(user)

    async def downgrade_to_free(
        self, user: UserTable, free_plan: Plan, now: datetime
    ) -> SubscriptionState:
        state = await self.apply_plan(user, free_plan, now, None)
        logger.info("subscription.downgraded", user_id=user.id, plan_slug=free_plan.slug)
        return state

    async def remove_plan(self, user: UserTable) -> SubscriptionState:
        """Clear the plan assignment entirely (explicit admin action)."""
        previous_plan_id = user.pricing_plan_id
        user.pricing_plan_id = None
        user.plan_updated_at = None
        user.plan_expires_at = None

        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise SubscriptionUpdateError(
                f"Failed to remove plan for user {user.id}: {e}", user_id=user.id
            ) from e

        logger.info("subscription.plan_removed", user_id=user.id, previous_plan_id=previous_plan_id)
        return SubscriptionState.from_user(user)

    async def extend_subscription(
        self, user: UserTable, plan: Plan, now: datetime
    ) -> SubscriptionState:
        """
        Start or renew ``plan`` for ``user``.

        Renewing the same plan while it is still running adds one period to
        the current expiry; anything else starts a fresh period at ``now``.
        """
        state = SubscriptionState.from_user(user)
        is_renewal = (
            state.plan_id == plan.id
            and state.expires_at is not None
            and state.expires_at > now
        )

        if is_renewal and plan.has_expiry:
            expires_at = compute_expiry(plan, state.expires_at)
        else:
            expires_at = compute_expiry(plan, now)

        result = await self.apply_plan(user, plan, now, expires_at)
        logger.info(
            "subscription.extended",
            user_id=user.id,
            plan_slug=plan.slug,
            renewal=is_renewal,
        )
        return result
