"""Repository utilities for subscription fields on user rows."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.entities import PricingPlanTable
from ripplix.platform.billing.plans.models import BillingPeriod
from ripplix.platform.user_management.models import UserTable

EXPIRING_PERIODS = (BillingPeriod.MONTHLY.value, BillingPeriod.YEARLY.value)


def _expired_query(now: datetime) -> Select:
    return (
        select(UserTable.id)
        .join(PricingPlanTable, UserTable.pricing_plan_id == PricingPlanTable.id)
        .where(
            PricingPlanTable.billing_period.in_(EXPIRING_PERIODS),
            UserTable.plan_expires_at.is_not(None),
            UserTable.plan_expires_at < now,
        )
    )


def _expiring_soon_query(now: datetime, days: int) -> Select:
    return select(UserTable).where(
        UserTable.is_active.is_(True),
        UserTable.plan_expires_at.is_not(None),
        UserTable.plan_expires_at >= now,
        UserTable.plan_expires_at <= now + timedelta(days=days),
    )


class SubscriptionRepository:
    """Explicit queries over ``users`` joined with ``pricing_plans``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: int) -> UserTable | None:
        result = await self.session.execute(select(UserTable).where(UserTable.id == user_id))
        return result.scalar_one_or_none()

    async def expired_candidates(self, now: datetime) -> list[int]:
        """IDs of users on monthly/yearly plans whose expiry lies before ``now``."""
        result = await self.session.execute(_expired_query(now).order_by(UserTable.id))
        return list(result.scalars().all())

    async def is_expired_candidate(self, user_id: int, now: datetime) -> bool:
        """Whether ``user_id`` is on a monthly/yearly plan whose expiry lies before ``now``."""
        result = await self.session.execute(_expired_query(now).where(UserTable.id == user_id))
        return result.scalar_one_or_none() is not None

    async def expiring_soon(self, now: datetime, days: int) -> list[UserTable]:
        result = await self.session.execute(
            _expiring_soon_query(now, days).order_by(UserTable.plan_expires_at, UserTable.id)
        )
        return list(result.scalars().all())

    async def count_expired(self, now: datetime) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(_expired_query(now).subquery())
        )
        return int(result.scalar_one() or 0)

    async def count_expiring_soon(self, now: datetime, days: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(_expiring_soon_query(now, days).subquery())
        )
        return int(result.scalar_one() or 0)

    async def count_current_by_period(self, now: datetime) -> dict[str, int]:
        """Active users per billing period, excluding expired monthly/yearly ones."""
        result = await self.session.execute(
            select(PricingPlanTable.billing_period, func.count(UserTable.id))
            .join(PricingPlanTable, UserTable.pricing_plan_id == PricingPlanTable.id)
            .where(
                UserTable.is_active.is_(True),
                or_(UserTable.plan_expires_at.is_(None), UserTable.plan_expires_at >= now),
            )
            .group_by(PricingPlanTable.billing_period)
        )
        return {period: int(count) for period, count in result.all()}

    async def count_free_members(self) -> int:
        """Active users on a free-priced plan."""
        result = await self.session.execute(
            select(func.count(UserTable.id))
            .join(PricingPlanTable, UserTable.pricing_plan_id == PricingPlanTable.id)
            .where(
                UserTable.is_active.is_(True),
                or_(
                    PricingPlanTable.billing_period == BillingPeriod.FREE.value,
                    PricingPlanTable.price == 0,
                ),
            )
        )
        return int(result.scalar_one() or 0)

    async def current_recurring_subscribers(
        self, now: datetime
    ) -> list[tuple[UserTable, PricingPlanTable]]:
        """Active monthly/yearly subscribers whose period has not run out."""
        result = await self.session.execute(
            select(UserTable, PricingPlanTable)
            .join(PricingPlanTable, UserTable.pricing_plan_id == PricingPlanTable.id)
            .where(
                UserTable.is_active.is_(True),
                PricingPlanTable.billing_period.in_(EXPIRING_PERIODS),
                or_(UserTable.plan_expires_at.is_(None), UserTable.plan_expires_at >= now),
            )
        )
        return [(user, plan) for user, plan in result.all()]
