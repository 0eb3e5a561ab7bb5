"""Per-user subscription state, plan assignment and expiry handling."""

from ripplix.platform.billing.subscriptions.expiry import ExpiryProcessor
from ripplix.platform.billing.subscriptions.models import (
    ExpiryRunResult,
    NotificationResult,
    RevenueSummary,
    SubscriptionAnalytics,
    SubscriptionState,
    compute_expiry,
)
from ripplix.platform.billing.subscriptions.notifications import (
    ExpiryNotice,
    ExpiryNotifier,
    LogExpiryNotifier,
)
from ripplix.platform.billing.subscriptions.repository import SubscriptionRepository
from ripplix.platform.billing.subscriptions.service import SubscriptionService, validate_period

__all__ = [
    "ExpiryNotice",
    "ExpiryNotifier",
    "ExpiryProcessor",
    "ExpiryRunResult",
    "LogExpiryNotifier",
    "NotificationResult",
    "RevenueSummary",
    "SubscriptionAnalytics",
    "SubscriptionRepository",
    "SubscriptionService",
    "SubscriptionState",
    "compute_expiry",
    "validate_period",
]
