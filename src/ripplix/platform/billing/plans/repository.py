"""Repository utilities for pricing plans."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.entities import PricingPlanTable
from ripplix.platform.billing.plans.catalog import PlanCatalog
from ripplix.platform.billing.plans.models import Plan
from ripplix.platform.user_management.models import UserTable


class PlanRepository:
    """Data-access helpers for :class:`PricingPlanTable`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, plan_id: int) -> Plan | None:
        row = await self.session.get(PricingPlanTable, plan_id)
        return Plan.from_entity(row) if row is not None else None

    async def get_by_slug(self, slug: str) -> Plan | None:
        result = await self.session.execute(
            select(PricingPlanTable).where(PricingPlanTable.slug == slug)
        )
        row = result.scalar_one_or_none()
        return Plan.from_entity(row) if row is not None else None

    async def list_all(self) -> list[Plan]:
        result = await self.session.execute(
            select(PricingPlanTable).order_by(PricingPlanTable.sort_order, PricingPlanTable.price)
        )
        return [Plan.from_entity(row) for row in result.scalars().all()]

    async def load_catalog(self) -> PlanCatalog:
        return PlanCatalog(await self.list_all())

    async def count_users(self, plan_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(UserTable).where(UserTable.pricing_plan_id == plan_id)
        )
        return int(result.scalar_one() or 0)

    async def delete(self, plan_id: int) -> None:
        row = await self.session.get(PricingPlanTable, plan_id)
        if row is not None:
            await self.session.delete(row)
            await self.session.flush()
