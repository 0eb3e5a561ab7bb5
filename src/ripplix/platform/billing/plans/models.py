"""
Pricing plan domain models.

Plans are immutable snapshots of ``pricing_plans`` rows. Capacity limits are a
tagged union (``Limited`` | ``Unlimited``) so the stored max-int sentinel never
leaks into arithmetic.
"""

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from ripplix.platform.billing.entities import UNLIMITED_SENTINEL, PricingPlanTable


class BillingPeriod(str, Enum):
    """Billing period of a plan; decides whether an expiry date applies."""

    FREE = "free"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    LIFETIME = "lifetime"

    @property
    def has_expiry(self) -> bool:
        return self in (BillingPeriod.MONTHLY, BillingPeriod.YEARLY)


class Limited(BaseModel):
    """Capacity capped at ``limit`` items."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["limited"] = "limited"
    limit: int = Field(ge=0)

    def allows(self, current_count: int) -> bool:
        """Whether one more item fits next to ``current_count`` existing ones."""
        return current_count < self.limit


class Unlimited(BaseModel):
    """Capacity without a cap."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unlimited"] = "unlimited"

    def allows(self, current_count: int) -> bool:
        return True


Capacity = Annotated[Limited | Unlimited, Field(discriminator="kind")]


def capacity_from_stored(value: int | None) -> Limited | Unlimited:
    """Convert a stored capacity column into a typed capacity."""
    if value is None:
        return Limited(limit=0)
    if value >= UNLIMITED_SENTINEL:
        return Unlimited()
    return Limited(limit=max(0, value))


def capacity_to_stored(capacity: Limited | Unlimited) -> int:
    """Convert a typed capacity back into its column value."""
    if isinstance(capacity, Unlimited):
        return UNLIMITED_SENTINEL
    return capacity.limit


class PlanLimits(BaseModel):
    """Entitlement-relevant limits of a plan."""

    model_config = ConfigDict(frozen=True)

    max_boards: Capacity
    max_items_per_board: Capacity
    can_share: bool = False

    @classmethod
    def closed(cls) -> "PlanLimits":
        """Limits granting nothing; used when no plan can be resolved at all."""
        return cls(
            max_boards=Limited(limit=0),
            max_items_per_board=Limited(limit=0),
            can_share=False,
        )


class Plan(BaseModel):
    """Immutable pricing plan."""

    model_config = ConfigDict(frozen=True)

    id: int
    slug: str
    name: str
    price: Decimal = Decimal("0")
    currency: str = "USD"
    billing_period: BillingPeriod
    max_boards: Capacity
    max_items_per_board: Capacity
    can_share: bool = False
    student_discount_percent: int | None = Field(None, ge=0, le=100)
    is_active: bool = True
    sort_order: int = 0

    @classmethod
    def from_entity(cls, row: PricingPlanTable) -> "Plan":
        """Map a ``pricing_plans`` row to a plan snapshot."""
        return cls(
            id=row.id,
            slug=row.slug,
            name=row.name,
            price=Decimal(row.price if row.price is not None else 0),
            currency=row.currency or "USD",
            billing_period=BillingPeriod(row.billing_period),
            max_boards=capacity_from_stored(row.max_boards),
            max_items_per_board=capacity_from_stored(row.max_libraries_per_board),
            can_share=bool(row.can_share),
            student_discount_percent=row.student_discount_percentage,
            is_active=bool(row.is_active),
            sort_order=row.sort_order or 0,
        )

    @property
    def has_expiry(self) -> bool:
        return self.billing_period.has_expiry

    @property
    def limits(self) -> PlanLimits:
        return PlanLimits(
            max_boards=self.max_boards,
            max_items_per_board=self.max_items_per_board,
            can_share=self.can_share,
        )

    @property
    def student_price(self) -> Decimal:
        """Price after the student discount, rounded to cents."""
        if not self.student_discount_percent or self.price == 0:
            return self.price
        factor = Decimal(100 - self.student_discount_percent) / Decimal(100)
        return (self.price * factor).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @property
    def monthly_price(self) -> Decimal:
        """Recurring revenue contribution per month (0 for free and lifetime)."""
        if self.billing_period == BillingPeriod.MONTHLY:
            return self.price
        if self.billing_period == BillingPeriod.YEARLY:
            return self.price / Decimal(12)
        return Decimal("0")
