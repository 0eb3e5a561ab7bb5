"""Active payment gateway resolution."""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.entities import PaymentGatewayTable
from ripplix.platform.billing.exceptions import PaymentGatewayConfigurationError
from ripplix.platform.billing.payments.models import Gateway


def resolve_active_gateway(gateways: Iterable[Gateway]) -> Gateway:
    """Return the single active gateway.

    Raises:
        PaymentGatewayConfigurationError: none or more than one gateway is active
    """
    active = [gateway for gateway in gateways if gateway.is_active]
    if len(active) != 1:
        slugs = sorted(gateway.slug for gateway in active)
        if not active:
            message = "No payment gateway is active"
        else:
            message = f"{len(active)} payment gateways are active: {', '.join(slugs)}"
        raise PaymentGatewayConfigurationError(message, active_slugs=slugs)
    return active[0]


class PaymentGatewayRepository:
    """Data-access helpers for :class:`PaymentGatewayTable`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[Gateway]:
        result = await self.session.execute(
            select(PaymentGatewayTable).order_by(PaymentGatewayTable.id)
        )
        return [Gateway.from_entity(row) for row in result.scalars().all()]

    async def active_gateway(self) -> Gateway:
        return resolve_active_gateway(await self.list_all())
