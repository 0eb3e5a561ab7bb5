"""
Payment reconciliation service.

Keeps users' plan fields consistent with their completed payments:

- single-payment mode applies a completed payment's plan right after the
  gateway confirms it
- audit mode lists completed payments whose plan is not the payer's current
  plan, without touching any state
- repairs only happen through :meth:`PaymentReconciler.apply_fixes`, called
  after an operator confirmed the proposed fixes
"""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.billing.entities import PaymentTable
from ripplix.platform.billing.exceptions import (
    PaymentError,
    PaymentNotCompletedError,
    PaymentNotFoundError,
    PlanNotFoundError,
    UserNotFoundError,
)
from ripplix.platform.billing.payments.models import (
    DriftRecord,
    FixResult,
    PaymentRecord,
    PaymentStatus,
    ProposedFix,
    ReconciliationReport,
    UserPaymentHistory,
)
from ripplix.platform.billing.payments.repository import PaymentRepository
from ripplix.platform.billing.plans.repository import PlanRepository
from ripplix.platform.billing.subscriptions.models import SubscriptionState, compute_expiry
from ripplix.platform.billing.subscriptions.repository import SubscriptionRepository
from ripplix.platform.billing.subscriptions.service import SubscriptionService
from ripplix.platform.db import AsyncSessionManager, utcnow
from ripplix.platform.logging import log_audit_event

logger = structlog.get_logger(__name__)


def detect_drift(payments: Iterable[tuple[PaymentRecord, int | None]]) -> list[DriftRecord]:
    """Completed payments whose plan differs from the paired current plan id."""
    return [
        DriftRecord(
            payment_id=payment.id,
            user_id=payment.user_id,
            expected_plan_id=payment.plan_id,
            actual_plan_id=current_plan_id,
            paid_at=payment.paid_at,
        )
        for payment, current_plan_id in payments
        if payment.status == PaymentStatus.COMPLETED and payment.plan_id != current_plan_id
    ]


def propose_fixes(report: ReconciliationReport) -> list[ProposedFix]:
    """
    Turn drift findings into repair proposals.

    One proposal per user, for their most recent payment, since re-applying an
    older one would be overwritten anyway. Drift without ``paid_at`` cannot be
    applied and is left for manual inspection.
    """
    latest: dict[int, DriftRecord] = {}
    for drift in report.drifts:
        if drift.paid_at is None:
            continue
        current = latest.get(drift.user_id)
        if current is None or (drift.paid_at, drift.payment_id) > (
            current.paid_at,
            current.payment_id,
        ):
            latest[drift.user_id] = drift

    return [
        ProposedFix(
            payment_id=drift.payment_id,
            user_id=drift.user_id,
            plan_id=drift.expected_plan_id,
            paid_at=drift.paid_at,
            previous_plan_id=drift.actual_plan_id,
        )
        for drift in sorted(latest.values(), key=lambda d: (d.paid_at, d.payment_id))
    ]


class PaymentReconciler:
    """Applies completed payments to user plans and audits for drift."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSessionManager],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock

    async def _apply(self, session: AsyncSession, payment: PaymentTable) -> SubscriptionState:
        if payment.status != PaymentStatus.COMPLETED.value or payment.paid_at is None:
            raise PaymentNotCompletedError(
                f"Payment {payment.id} is {payment.status} and cannot be applied",
                payment_id=payment.id,
                status=payment.status,
            )

        user = await SubscriptionRepository(session).get_user(payment.user_id)
        if user is None:
            raise UserNotFoundError(f"User {payment.user_id} not found", payment.user_id)

        plan = await PlanRepository(session).get(payment.pricing_plan_id)
        if plan is None:
            raise PlanNotFoundError(
                f"Plan {payment.pricing_plan_id} not found", plan_id=payment.pricing_plan_id
            )

        previous_plan_id = user.pricing_plan_id
        state = await SubscriptionService(session).apply_plan(
            user, plan, payment.paid_at, compute_expiry(plan, payment.paid_at)
        )

        log_audit_event(
            "payment.plan_applied",
            category="billing",
            user_id=str(user.id),
            resource_type="payment",
            resource_id=str(payment.id),
            previous_plan_id=previous_plan_id,
            plan_id=plan.id,
        )
        return state

    async def complete_payment(
        self,
        payment_id: int,
        paid_at: datetime | None = None,
        gateway_transaction_id: str | None = None,
    ) -> SubscriptionState:
        """
        Mark a pending payment completed and apply its plan in one transaction.

        Completing an already completed payment re-applies it without
        touching ``paid_at``.

        Args:
            payment_id: Payment to complete
            paid_at: Confirmation time, defaults to now
            gateway_transaction_id: Reference assigned by the gateway

        Returns:
            The payer's subscription state afterwards
        """
        async with self.session_factory() as session:
            payment = await PaymentRepository(session).get(payment_id)
            if payment is None:
                raise PaymentNotFoundError(f"Payment {payment_id} not found", payment_id)

            if payment.status == PaymentStatus.PENDING.value:
                payment.status = PaymentStatus.COMPLETED.value
                payment.paid_at = paid_at or self.clock()
                if gateway_transaction_id:
                    payment.gateway_transaction_id = gateway_transaction_id
                await session.flush()
            elif payment.status != PaymentStatus.COMPLETED.value:
                raise PaymentError(
                    f"Payment {payment_id} is {payment.status} and cannot be completed",
                    payment_id=payment_id,
                    context={"status": payment.status},
                )

            state = await self._apply(session, payment)
            await session.commit()

        logger.info("payment.completed", payment_id=payment_id, user_id=state.user_id)
        return state

    async def apply_payment(self, payment: PaymentRecord | int) -> SubscriptionState:
        """Apply a completed payment's plan to its payer; safe to repeat."""
        payment_id = payment if isinstance(payment, int) else payment.id
        async with self.session_factory() as session:
            row = await PaymentRepository(session).get(payment_id)
            if row is None:
                raise PaymentNotFoundError(f"Payment {payment_id} not found", payment_id)

            state = await self._apply(session, row)
            await session.commit()
        return state

    async def audit(
        self, since: datetime | None = None, now: datetime | None = None
    ) -> ReconciliationReport:
        """Report completed payments not reflected in the payer's plan. Read-only."""
        now = now or self.clock()
        async with self.session_factory() as session:
            payments = await PaymentRepository(session).completed_with_current_plan(since)

        report = ReconciliationReport(
            generated_at=now,
            since=since,
            payments_checked=len(payments),
            drifts=detect_drift(payments),
        )
        for drift in report.drifts:
            logger.warning(
                "reconciliation.drift_detected",
                payment_id=drift.payment_id,
                user_id=drift.user_id,
                expected_plan_id=drift.expected_plan_id,
                actual_plan_id=drift.actual_plan_id,
            )
        logger.info(
            "reconciliation.audit_completed",
            payments_checked=report.payments_checked,
            drift_count=report.drift_count,
        )
        return report

    async def audit_recent(self, hours: int, now: datetime | None = None) -> ReconciliationReport:
        now = now or self.clock()
        return await self.audit(since=now - timedelta(hours=hours), now=now)

    def propose_fixes(self, report: ReconciliationReport) -> list[ProposedFix]:
        return propose_fixes(report)

    async def apply_fixes(self, fixes: Iterable[ProposedFix]) -> FixResult:
        """Apply operator-confirmed fixes; each one succeeds or fails on its own."""
        result = FixResult()
        for fix in fixes:
            try:
                await self.apply_payment(fix.payment_id)
            except Exception:
                logger.exception(
                    "reconciliation.fix_failed", payment_id=fix.payment_id, user_id=fix.user_id
                )
                result.failed += 1
                result.failed_payment_ids.append(fix.payment_id)
            else:
                result.applied += 1

        logger.info("reconciliation.fixes_applied", applied=result.applied, failed=result.failed)
        return result

    async def user_history(self, user_id: int, limit: int = 10) -> UserPaymentHistory:
        async with self.session_factory() as session:
            user = await SubscriptionRepository(session).get_user(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found", user_id)
            payments = await PaymentRepository(session).list_for_user(user_id, limit)

        return UserPaymentHistory(
            user_id=user.id,
            name=user.name,
            email=user.email,
            state=SubscriptionState.from_user(user),
            payments=payments,
            drifts=detect_drift((payment, user.pricing_plan_id) for payment in payments),
        )

    async def recent_payments(self, hours: int, now: datetime | None = None) -> list[PaymentRecord]:
        now = now or self.clock()
        async with self.session_factory() as session:
            return await PaymentRepository(session).list_recent(now - timedelta(hours=hours))
