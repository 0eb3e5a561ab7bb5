"""
Billing database entities.

SQLAlchemy tables for pricing plans, payment gateways and payments.
Domain code never touches these rows through lazy relationships; repositories
load what they need explicitly and map rows to typed models.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ripplix.platform.db import Base, TimestampMixin, UTCDateTime

# Stored value meaning "no limit" for capacity columns (max 32-bit signed int)
UNLIMITED_SENTINEL = 2_147_483_647


class PricingPlanTable(Base, TimestampMixin):
    """SQLAlchemy table for pricing plans."""

    __tablename__ = "pricing_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    billing_period: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # free, monthly, yearly, lifetime

    # Capacity limits
    max_boards: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_libraries_per_board: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    can_share: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    student_discount_percentage: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_pricing_plans_billing_period", "billing_period"),
        Index("ix_pricing_plans_active_sort", "is_active", "sort_order"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PricingPlan {self.slug} period={self.billing_period}>"


class PaymentGatewayTable(Base, TimestampMixin):
    """SQLAlchemy table for configured payment gateways."""

    __tablename__ = "payment_gateways"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)  # stripe, sslcommerz
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<PaymentGateway {self.slug} active={self.is_active}>"


class PaymentTable(Base):
    """SQLAlchemy table for payments."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    gateway_transaction_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    pricing_plan_id: Mapped[int] = mapped_column(
        ForeignKey("pricing_plans.id"), nullable=False, index=True
    )
    payment_gateway_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_gateways.id"), nullable=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )  # pending, completed, failed, cancelled, refunded

    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        Index("ix_payments_status_created", "status", "created_at"),
        Index("ix_payments_user_status", "user_id", "status"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Payment {self.transaction_id} status={self.status}>"


__all__ = [
    "UNLIMITED_SENTINEL",
    "PricingPlanTable",
    "PaymentGatewayTable",
    "PaymentTable",
]
