"""Administrative plan operations with referential guards."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.exceptions import PlanInUseError, PlanNotFoundError
from ripplix.platform.billing.plans.models import Plan
from ripplix.platform.billing.plans.repository import PlanRepository
from ripplix.platform.settings import settings

logger = structlog.get_logger(__name__)


class PlanService:
    """Plan deletion guarded against dangling user references."""

    def __init__(
        self,
        session: AsyncSession,
        visitor_plan_slug: str | None = None,
        visitor_tracking_enabled: bool | None = None,
    ) -> None:
        self.session = session
        self.repository = PlanRepository(session)
        self.visitor_plan_slug = visitor_plan_slug or settings.subscriptions.visitor_plan_slug
        self.visitor_tracking_enabled = (
            settings.subscriptions.visitor_tracking_enabled
            if visitor_tracking_enabled is None
            else visitor_tracking_enabled
        )

    async def ensure_deletable(self, plan: Plan) -> None:
        """Raise :class:`PlanInUseError` while anything still references ``plan``."""
        if plan.slug == self.visitor_plan_slug and self.visitor_tracking_enabled:
            raise PlanInUseError(
                f"Plan '{plan.slug}' backs visitor tracking and cannot be deleted",
                slug=plan.slug,
            )

        user_count = await self.repository.count_users(plan.id)
        if user_count > 0:
            raise PlanInUseError(
                f"Plan '{plan.slug}' is assigned to {user_count} user(s)",
                slug=plan.slug,
                user_count=user_count,
            )

    async def delete_plan(self, plan_id: int) -> None:
        plan = await self.repository.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found", plan_id=plan_id)

        await self.ensure_deletable(plan)
        await self.repository.delete(plan_id)
        logger.info("plan.deleted", plan_id=plan_id, slug=plan.slug)
