"""
Tests for active gateway resolution.
"""

import pytest

from ripplix.platform.billing.exceptions import (
    BillingConfigurationError,
    PaymentGatewayConfigurationError,
)
from ripplix.platform.billing.payments import (
    Gateway,
    PaymentGatewayRepository,
    resolve_active_gateway,
)


def gateway(gateway_id: int, slug: str, is_active: bool) -> Gateway:
    return Gateway(id=gateway_id, slug=slug, name=slug.title(), provider=slug, is_active=is_active)


class TestResolveActiveGateway:
    def test_single_active_gateway(self):
        gateways = [gateway(1, "stripe", True), gateway(2, "sslcommerz", False)]

        assert resolve_active_gateway(gateways).slug == "stripe"

    def test_no_active_gateway(self):
        with pytest.raises(PaymentGatewayConfigurationError) as exc_info:
            resolve_active_gateway([gateway(1, "stripe", False)])

        assert exc_info.value.message == "No payment gateway is active"
        assert exc_info.value.context["active_slugs"] == []

    def test_several_active_gateways(self):
        gateways = [gateway(1, "stripe", True), gateway(2, "sslcommerz", True)]

        with pytest.raises(PaymentGatewayConfigurationError) as exc_info:
            resolve_active_gateway(gateways)

        assert exc_info.value.message == "2 payment gateways are active: sslcommerz, stripe"
        assert exc_info.value.context["active_slugs"] == ["sslcommerz", "stripe"]

    def test_is_a_configuration_error(self):
        with pytest.raises(BillingConfigurationError):
            resolve_active_gateway([])


class TestPaymentGatewayRepository:
    async def test_active_gateway_from_database(self, session_factory, create_gateway):
        await create_gateway("stripe", is_active=False)
        await create_gateway("sslcommerz", is_active=True, provider="sslcommerz")

        async with session_factory() as session:
            repository = PaymentGatewayRepository(session)
            gateways = await repository.list_all()
            active = await repository.active_gateway()

        assert [g.slug for g in gateways] == ["stripe", "sslcommerz"]
        assert active.slug == "sslcommerz"
        assert active.provider == "sslcommerz"

    async def test_empty_table_is_misconfigured(self, session_factory):
        async with session_factory() as session:
            with pytest.raises(PaymentGatewayConfigurationError):
                await PaymentGatewayRepository(session).active_gateway()
