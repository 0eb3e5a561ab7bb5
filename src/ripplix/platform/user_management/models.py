"""User model carrying the embedded membership fields."""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ripplix.platform.db import Base, TimestampMixin, UTCDateTime


class UserTable(Base, TimestampMixin):
    """Registered member.

    ``pricing_plan_id``, ``plan_updated_at`` and ``plan_expires_at`` are only
    ever written through :meth:`SubscriptionService.apply_plan` and
    :meth:`SubscriptionService.remove_plan`.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    pricing_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("pricing_plans.id"), nullable=True, index=True
    )
    # Start of the current plan period
    plan_updated_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    plan_expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True, index=True
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.id} plan={self.pricing_plan_id}>"
