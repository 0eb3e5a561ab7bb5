"""
Central task registration module for Celery.

Each task drives one async batch operation to completion with
``asyncio.run`` and disposes the engine afterwards, since pooled connections
are bound to the loop that opened them.
"""

import asyncio
from typing import Any

import structlog

from ripplix.platform.billing.payments import PaymentReconciler
from ripplix.platform.billing.subscriptions import ExpiryProcessor
from ripplix.platform.celery_app import celery_app
from ripplix.platform.db import dispose_engine, get_async_db
from ripplix.platform.settings import settings

logger = structlog.get_logger(__name__)


async def _handle_expired(notify: bool) -> dict[str, Any]:
    try:
        processor = ExpiryProcessor(get_async_db)
        result = await processor.run()
        summary: dict[str, Any] = {"status": "ok", **result.model_dump(exclude={"failed_user_ids"})}
        if notify:
            notices = await processor.send_expiry_notifications()
            summary["notifications"] = notices.model_dump()
        return summary
    finally:
        await dispose_engine()


async def _audit_recent(hours: int) -> dict[str, Any]:
    try:
        report = await PaymentReconciler(get_async_db).audit_recent(hours)
    finally:
        await dispose_engine()

    if report.has_drift:
        logger.warning(
            "reconciliation.scheduled_audit_found_drift",
            drift_count=report.drift_count,
            payment_ids=[drift.payment_id for drift in report.drifts],
        )
    return {
        "status": "ok",
        "payments_checked": report.payments_checked,
        "drift_count": report.drift_count,
    }


@celery_app.task(name="subscriptions.handle_expired")
def handle_expired_subscriptions_task() -> dict[str, Any]:
    """Periodic task downgrading expired subscriptions to the free plan."""
    return asyncio.run(_handle_expired(settings.subscriptions.notify_on_scheduled_run))


@celery_app.task(name="payments.audit_recent")
def audit_recent_payments_task() -> dict[str, Any]:
    """Periodic report-only audit of recently completed payments."""
    return asyncio.run(_audit_recent(settings.subscriptions.reconciliation_lookback_hours))


__all__ = [
    "audit_recent_payments_task",
    "handle_expired_subscriptions_task",
]
