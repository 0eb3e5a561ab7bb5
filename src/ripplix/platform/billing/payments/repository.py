"""Repository utilities for payments."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.entities import PaymentGatewayTable, PaymentTable, PricingPlanTable
from ripplix.platform.billing.payments.models import PaymentRecord, PaymentStatus
from ripplix.platform.user_management.models import UserTable


def _with_names() -> Select:
    return (
        select(PaymentTable, PricingPlanTable.name, PaymentGatewayTable.slug)
        .outerjoin(PricingPlanTable, PaymentTable.pricing_plan_id == PricingPlanTable.id)
        .outerjoin(PaymentGatewayTable, PaymentTable.payment_gateway_id == PaymentGatewayTable.id)
    )


class PaymentRepository:
    """Data-access helpers for :class:`PaymentTable`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, payment_id: int) -> PaymentTable | None:
        result = await self.session.execute(
            select(PaymentTable).where(PaymentTable.id == payment_id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: int, limit: int = 10) -> list[PaymentRecord]:
        """Latest payments of ``user_id``, newest first."""
        result = await self.session.execute(
            _with_names()
            .where(PaymentTable.user_id == user_id)
            .order_by(PaymentTable.created_at.desc(), PaymentTable.id.desc())
            .limit(limit)
        )
        return [
            PaymentRecord.from_entity(row, plan_name=plan_name, gateway_slug=gateway_slug)
            for row, plan_name, gateway_slug in result.all()
        ]

    async def list_recent(self, since: datetime) -> list[PaymentRecord]:
        """Payments of any status created at or after ``since``, newest first."""
        result = await self.session.execute(
            _with_names()
            .where(PaymentTable.created_at >= since)
            .order_by(PaymentTable.created_at.desc(), PaymentTable.id.desc())
        )
        return [
            PaymentRecord.from_entity(row, plan_name=plan_name, gateway_slug=gateway_slug)
            for row, plan_name, gateway_slug in result.all()
        ]

    async def completed_with_current_plan(
        self, since: datetime | None = None
    ) -> list[tuple[PaymentRecord, int | None]]:
        """Completed payments paired with the payer's current plan id."""
        stmt = (
            select(PaymentTable, UserTable.pricing_plan_id)
            .join(UserTable, PaymentTable.user_id == UserTable.id)
            .where(PaymentTable.status == PaymentStatus.COMPLETED.value)
        )
        if since is not None:
            stmt = stmt.where(PaymentTable.created_at >= since)

        result = await self.session.execute(
            stmt.order_by(PaymentTable.created_at.desc(), PaymentTable.id.desc())
        )
        return [(PaymentRecord.from_entity(row), plan_id) for row, plan_id in result.all()]
