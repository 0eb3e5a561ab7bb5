"""
Billing system module.

Provides the membership core:
- Pricing plan catalog
- Subscription state and expiry handling
- Payment reconciliation
- Board entitlements
"""

from ripplix.platform.billing.entitlements import EntitlementGate, PlanLimitsSummary
from ripplix.platform.billing.exceptions import (
    BillingConfigurationError,
    BillingError,
    ExpiryQueryError,
    InvalidSubscriptionPeriodError,
    PaymentError,
    PaymentGatewayConfigurationError,
    PaymentNotCompletedError,
    PaymentNotFoundError,
    PlanError,
    PlanInUseError,
    PlanNotFoundError,
    SubscriptionError,
    SubscriptionUpdateError,
    UserNotFoundError,
)
from ripplix.platform.billing.payments import PaymentReconciler
from ripplix.platform.billing.plans import PlanCatalog
from ripplix.platform.billing.subscriptions import ExpiryProcessor, SubscriptionService

__all__ = [
    # Exceptions
    "BillingError",
    "BillingConfigurationError",
    "PlanError",
    "PlanNotFoundError",
    "PlanInUseError",
    "SubscriptionError",
    "InvalidSubscriptionPeriodError",
    "SubscriptionUpdateError",
    "UserNotFoundError",
    "ExpiryQueryError",
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentNotCompletedError",
    "PaymentGatewayConfigurationError",
    # Components
    "EntitlementGate",
    "ExpiryProcessor",
    "PaymentReconciler",
    "PlanCatalog",
    "PlanLimitsSummary",
    "SubscriptionService",
]
