"""
Celery application configuration.

Runs the scheduled membership jobs: expiry processing and the report-only
payment audit.
"""

from typing import Any

from celery import Celery

from ripplix.platform.settings import settings

# Create Celery application
celery_app = Celery(
    "ripplix_platform",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=["ripplix.platform.tasks"],
)

# Configure Celery settings
celery_app.conf.update(
    task_default_queue="default",
    # Task execution settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.celery.timezone,
    enable_utc=True,
    # Task result settings
    result_expires=3600,  # 1 hour
    task_track_started=True,
    task_time_limit=settings.celery.task_time_limit,
    task_soft_time_limit=settings.celery.task_soft_time_limit,
    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)


@celery_app.on_after_finalize.connect  # type: ignore[misc]
def setup_periodic_tasks(sender: Any, **kwargs: Any) -> None:
    """Register the membership schedules."""
    from ripplix.platform.tasks import audit_recent_payments_task, handle_expired_subscriptions_task

    sender.add_periodic_task(
        settings.subscriptions.expiry_check_interval_seconds,
        handle_expired_subscriptions_task.s(),
        name="subscriptions-handle-expired",
    )

    sender.add_periodic_task(
        settings.subscriptions.payment_audit_interval_seconds,
        audit_recent_payments_task.s(),
        name="payments-audit-recent",
    )


__all__ = ["celery_app"]
