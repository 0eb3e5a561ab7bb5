"""Expiry notification dispatch."""

from datetime import datetime
from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger(__name__)


class ExpiryNotice(BaseModel):
    """A subscription about to run out."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    email: str
    name: str
    plan_id: int | None
    expires_at: datetime
    days_left: int


class ExpiryNotifier(Protocol):
    """Delivers a single expiry notice; raising marks the delivery as failed."""

    async def notify_expiring(self, notice: ExpiryNotice) -> None: ...  # pragma: no cover


class LogExpiryNotifier:
    """Default notifier that only records the notice in the application log."""

    async def notify_expiring(self, notice: ExpiryNotice) -> None:
        logger.info(
            "subscription.expiry_notice",
            user_id=notice.user_id,
            plan_id=notice.plan_id,
            expires_at=notice.expires_at.isoformat(),
            days_left=notice.days_left,
        )
