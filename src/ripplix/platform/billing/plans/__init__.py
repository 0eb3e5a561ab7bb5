"""Pricing plan catalog."""

from ripplix.platform.billing.plans.catalog import PlanCatalog
from ripplix.platform.billing.plans.models import (
    BillingPeriod,
    Capacity,
    Limited,
    Plan,
    PlanLimits,
    Unlimited,
    capacity_from_stored,
    capacity_to_stored,
)
from ripplix.platform.billing.plans.repository import PlanRepository
from ripplix.platform.billing.plans.service import PlanService

__all__ = [
    "BillingPeriod",
    "Capacity",
    "Limited",
    "Plan",
    "PlanCatalog",
    "PlanLimits",
    "PlanRepository",
    "PlanService",
    "Unlimited",
    "capacity_from_stored",
    "capacity_to_stored",
]
