"""Payments and plan reconciliation."""

from ripplix.platform.billing.payments.gateways import (
    PaymentGatewayRepository,
    resolve_active_gateway,
)
from ripplix.platform.billing.payments.models import (
    DriftRecord,
    FixResult,
    Gateway,
    PaymentRecord,
    PaymentStatus,
    ProposedFix,
    ReconciliationReport,
    UserPaymentHistory,
)
from ripplix.platform.billing.payments.reconciliation_service import (
    PaymentReconciler,
    detect_drift,
    propose_fixes,
)
from ripplix.platform.billing.payments.repository import PaymentRepository

__all__ = [
    "DriftRecord",
    "FixResult",
    "Gateway",
    "PaymentGatewayRepository",
    "PaymentReconciler",
    "PaymentRecord",
    "PaymentRepository",
    "PaymentStatus",
    "ProposedFix",
    "ReconciliationReport",
    "UserPaymentHistory",
    "detect_drift",
    "propose_fixes",
    "resolve_active_gateway",
]
