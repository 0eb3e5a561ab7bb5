"""
Payment reconciliation models.

A :class:`DriftRecord` is a finding, not an error: a completed payment whose
plan differs from the payer's current plan. The same record is produced
whether the payment was never applied or the user changed plans afterwards;
telling the two apart is left to the operator.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ripplix.platform.billing.entities import PaymentGatewayTable, PaymentTable
from ripplix.platform.billing.subscriptions.models import SubscriptionState


class PaymentStatus(str, Enum):
    """Lifecycle status of a payment."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentRecord(BaseModel):
    """Read model of a payment row, optionally enriched with display names."""

    model_config = ConfigDict(frozen=True)

    id: int
    transaction_id: str
    user_id: int
    plan_id: int
    gateway_id: int | None = None
    gateway_transaction_id: str | None = None
    amount: Decimal
    currency: str = "USD"
    status: PaymentStatus
    paid_at: datetime | None = None
    created_at: datetime
    plan_name: str | None = None
    gateway_slug: str | None = None

    @classmethod
    def from_entity(
        cls,
        row: PaymentTable,
        plan_name: str | None = None,
        gateway_slug: str | None = None,
    ) -> "PaymentRecord":
        return cls(
            id=row.id,
            transaction_id=row.transaction_id,
            user_id=row.user_id,
            plan_id=row.pricing_plan_id,
            gateway_id=row.payment_gateway_id,
            gateway_transaction_id=row.gateway_transaction_id,
            amount=Decimal(row.amount),
            currency=row.currency,
            status=PaymentStatus(row.status),
            paid_at=row.paid_at,
            created_at=row.created_at,
            plan_name=plan_name,
            gateway_slug=gateway_slug,
        )

    @property
    def formatted_amount(self) -> str:
        return f"{self.amount:.2f} {self.currency}"


class DriftRecord(BaseModel):
    """Completed payment whose plan is not the payer's current plan."""

    model_config = ConfigDict(frozen=True)

    payment_id: int
    user_id: int
    expected_plan_id: int
    actual_plan_id: int | None
    paid_at: datetime | None


class ReconciliationReport(BaseModel):
    """Result of a report-only audit over completed payments."""

    generated_at: datetime
    since: datetime | None = None
    payments_checked: int = 0
    drifts: list[DriftRecord] = Field(default_factory=list)

    @property
    def drift_count(self) -> int:
        return len(self.drifts)

    @property
    def has_drift(self) -> bool:
        return bool(self.drifts)


class ProposedFix(BaseModel):
    """Re-application of one payment's plan, pending operator confirmation."""

    model_config = ConfigDict(frozen=True)

    payment_id: int
    user_id: int
    plan_id: int
    paid_at: datetime
    previous_plan_id: int | None = None


class FixResult(BaseModel):
    """Outcome of applying confirmed fixes."""

    applied: int = 0
    failed: int = 0
    failed_payment_ids: list[int] = Field(default_factory=list)


class UserPaymentHistory(BaseModel):
    """A user's plan fields next to their latest payments."""

    user_id: int
    name: str
    email: str
    state: SubscriptionState
    payments: list[PaymentRecord] = Field(default_factory=list)
    drifts: list[DriftRecord] = Field(default_factory=list)


class Gateway(BaseModel):
    """Configured payment gateway."""

    model_config = ConfigDict(frozen=True)

    id: int
    slug: str
    name: str
    provider: str
    is_active: bool = False

    @classmethod
    def from_entity(cls, row: PaymentGatewayTable) -> "Gateway":
        return cls(
            id=row.id,
            slug=row.slug,
            name=row.name,
            provider=row.provider,
            is_active=bool(row.is_active),
        )
