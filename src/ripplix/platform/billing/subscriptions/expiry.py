"""
Subscription expiry processing.

Finds users whose monthly or yearly plan has run out and moves them onto the
free plan. Each user is handled in an isolated session so one failing row
never rolls back or blocks the others.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ripplix.platform.billing.exceptions import (
    BillingConfigurationError,
    ExpiryQueryError,
    SubscriptionUpdateError,
    UserNotFoundError,
)
from ripplix.platform.billing.plans.models import BillingPeriod, Plan
from ripplix.platform.billing.plans.repository import PlanRepository
from ripplix.platform.billing.subscriptions.models import (
    ExpiryRunResult,
    NotificationResult,
    RevenueSummary,
    SubscriptionAnalytics,
    SubscriptionState,
)
from ripplix.platform.billing.subscriptions.notifications import (
    ExpiryNotice,
    ExpiryNotifier,
    LogExpiryNotifier,
)
from ripplix.platform.billing.subscriptions.repository import SubscriptionRepository
from ripplix.platform.billing.subscriptions.service import SubscriptionService
from ripplix.platform.db import AsyncSessionManager, utcnow
from ripplix.platform.settings import settings

logger = structlog.get_logger(__name__)


class ExpiryProcessor:
    """Batch downgrade of expired subscriptions plus related reporting."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSessionManager],
        notifier: ExpiryNotifier | None = None,
        free_plan_slug: str | None = None,
        expiring_soon_days: int | None = None,
        concurrency: int | None = None,
        run_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        config = settings.subscriptions
        self.session_factory = session_factory
        self.notifier = notifier or LogExpiryNotifier()
        self.free_plan_slug = free_plan_slug or config.free_plan_slug
        self.expiring_soon_days = (
            expiring_soon_days if expiring_soon_days is not None else config.expiring_soon_days
        )
        self.concurrency = max(1, concurrency or config.expiry_concurrency)
        self.run_timeout_seconds = (
            run_timeout_seconds
            if run_timeout_seconds is not None
            else config.expiry_run_timeout_seconds
        )
        self.clock = clock

    async def _resolve_free_plan(self, plans: PlanRepository) -> Plan:
        plan = await plans.get_by_slug(self.free_plan_slug)
        if plan is None or not plan.is_active:
            raise BillingConfigurationError(
                f"Free plan '{self.free_plan_slug}' is missing or inactive",
                config_key="subscriptions.free_plan_slug",
                recovery_hint="Seed an active free plan or fix SUBSCRIPTIONS__FREE_PLAN_SLUG",
            )
        return plan

    async def run(self, now: datetime | None = None) -> ExpiryRunResult:
        """
        Downgrade every user whose paid period ended before ``now``.

        Args:
            now: Reference time, defaults to the processor clock

        Returns:
            Aggregated counts, ``downgraded + failed == total``

        Raises:
            BillingConfigurationError: no active free plan to downgrade into
            ExpiryQueryError: the candidate set could not be loaded
        """
        now = now or self.clock()

        async with self.session_factory() as session:
            try:
                free_plan = await self._resolve_free_plan(PlanRepository(session))
                candidates = await SubscriptionRepository(session).expired_candidates(now)
            except SQLAlchemyError as e:
                logger.error("subscription.expiry_query_failed", error=str(e))
                raise ExpiryQueryError(f"Could not load expired subscriptions: {e}") from e

        logger.info(
            "subscription.expiry_run_started",
            candidates=len(candidates),
            free_plan=free_plan.slug,
            concurrency=self.concurrency,
            now=now.isoformat(),
        )

        result = ExpiryRunResult()
        loop = asyncio.get_running_loop()
        deadline = (
            loop.time() + self.run_timeout_seconds if self.run_timeout_seconds else None
        )
        semaphore = asyncio.Semaphore(self.concurrency)

        async def process(user_id: int) -> None:
            async with semaphore:
                if deadline is not None and loop.time() >= deadline:
                    result.pending += 1
                    return

                result.total += 1
                try:
                    await self._downgrade_user(user_id, free_plan, now)
                except Exception:
                    logger.exception("subscription.downgrade_failed", user_id=user_id)
                    result.failed += 1
                    result.failed_user_ids.append(user_id)
                else:
                    result.downgraded += 1

        await asyncio.gather(*(process(user_id) for user_id in candidates))

        logger.info(
            "subscription.expiry_run_completed",
            total=result.total,
            downgraded=result.downgraded,
            failed=result.failed,
            pending=result.pending,
        )
        return result

    async def _downgrade_user(self, user_id: int, free_plan: Plan, now: datetime) -> None:
        async with self.session_factory() as session:
            repository = SubscriptionRepository(session)
            user = await repository.get_user(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} disappeared during the run", user_id)
            if not await repository.is_expired_candidate(user_id, now):
                raise SubscriptionUpdateError(
                    f"User {user_id} is no longer expired", user_id=user_id
                )

            await SubscriptionService(session).downgrade_to_free(user, free_plan, now)
            await session.commit()

    async def handle_user_on_access(self, user_id: int, now: datetime | None = None) -> bool:
        """
        Downgrade a single user on access if their plan has expired.

        Only monthly and yearly plans qualify, as in :meth:`run`. Returns
        ``True`` when a downgrade happened. Errors are logged, never raised.
        """
        now = now or self.clock()
        try:
            async with self.session_factory() as session:
                repository = SubscriptionRepository(session)
                user = await repository.get_user(user_id)
                if user is None or not await repository.is_expired_candidate(user_id, now):
                    return False

                free_plan = await self._resolve_free_plan(PlanRepository(session))
                await SubscriptionService(session).downgrade_to_free(user, free_plan, now)
                await session.commit()
        except Exception:
            logger.exception("subscription.access_downgrade_failed", user_id=user_id)
            return False
        return True

    async def analytics(self, now: datetime | None = None) -> SubscriptionAnalytics:
        """Membership counts as of ``now``; read-only."""
        now = now or self.clock()
        async with self.session_factory() as session:
            repository = SubscriptionRepository(session)
            by_period = await repository.count_current_by_period(now)
            expiring_soon = await repository.count_expiring_soon(now, self.expiring_soon_days)
            expired = await repository.count_expired(now)
            free_members = await repository.count_free_members()

        monthly = by_period.get(BillingPeriod.MONTHLY.value, 0)
        yearly = by_period.get(BillingPeriod.YEARLY.value, 0)
        lifetime = by_period.get(BillingPeriod.LIFETIME.value, 0)
        return SubscriptionAnalytics(
            as_of=now,
            active_paid=monthly + yearly + lifetime,
            expiring_soon=expiring_soon,
            expired_pending_downgrade=expired,
            monthly_subscribers=monthly,
            yearly_subscribers=yearly,
            lifetime_subscribers=lifetime,
            free_members=free_members,
        )

    async def monthly_recurring_revenue(self, now: datetime | None = None) -> RevenueSummary:
        """Monthly prices plus yearly prices spread over twelve months."""
        now = now or self.clock()
        async with self.session_factory() as session:
            rows = await SubscriptionRepository(session).current_recurring_subscribers(now)

        total = sum((Plan.from_entity(plan).monthly_price for _, plan in rows), Decimal("0"))
        return RevenueSummary(
            as_of=now,
            monthly_recurring_revenue=total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        )

    async def send_expiry_notifications(self, now: datetime | None = None) -> NotificationResult:
        """Notify each expiring-soon user once; failures are counted, not retried."""
        now = now or self.clock()
        async with self.session_factory() as session:
            users = await SubscriptionRepository(session).expiring_soon(
                now, self.expiring_soon_days
            )
            notices = [
                ExpiryNotice(
                    user_id=user.id,
                    email=user.email,
                    name=user.name,
                    plan_id=user.pricing_plan_id,
                    expires_at=user.plan_expires_at,
                    days_left=SubscriptionState.from_user(user).days_until_expiry(now) or 0,
                )
                for user in users
            ]

        result = NotificationResult()
        notified: set[int] = set()
        for notice in notices:
            if notice.user_id in notified:
                continue
            notified.add(notice.user_id)
            try:
                await self.notifier.notify_expiring(notice)
            except Exception:
                logger.exception("subscription.expiry_notice_failed", user_id=notice.user_id)
                result.failed += 1
            else:
                result.sent += 1

        logger.info("subscription.expiry_notices_sent", sent=result.sent, failed=result.failed)
        return result
