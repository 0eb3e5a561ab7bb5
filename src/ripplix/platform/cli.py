#!/usr/bin/env python
"""
CLI management commands for the Ripplix membership platform.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import click

from ripplix.platform.billing.exceptions import (
    BillingConfigurationError,
    ExpiryQueryError,
    UserNotFoundError,
)
from ripplix.platform.billing.payments import (
    PaymentReconciler,
    PaymentStatus,
    ReconciliationReport,
    propose_fixes,
)
from ripplix.platform.billing.subscriptions import ExpiryProcessor
from ripplix.platform.db import create_all_tables_async, get_async_db, utcnow
from ripplix.platform.logging import setup_logging
from ripplix.platform.settings import settings


@dataclass
class CLIDependencies:
    """Bundle of injectable dependencies used by CLI commands."""

    expiry_processor_factory: Callable[[], ExpiryProcessor]
    reconciler_factory: Callable[[], PaymentReconciler]
    create_tables: Callable[[], Awaitable[None]]
    subprocess_run: Callable[..., Any]
    clock: Callable[[], datetime]


def _get_cli_dependencies() -> CLIDependencies:
    """Return the default dependency bundle for CLI commands."""
    import subprocess

    return CLIDependencies(
        expiry_processor_factory=lambda: ExpiryProcessor(get_async_db),
        reconciler_factory=lambda: PaymentReconciler(get_async_db),
        create_tables=create_all_tables_async,
        subprocess_run=subprocess.run,
        clock=utcnow,
    )


def _format_dt(value: datetime | None, empty: str = "-") -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else empty


def _echo_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    cells = [[str(cell) for cell in row] for row in rows]
    widths = [
        max([len(header)] + [len(row[index]) for row in cells])
        for index, header in enumerate(headers)
    ]
    click.echo("  ".join(header.ljust(width) for header, width in zip(headers, widths)))
    click.echo("  ".join("-" * width for width in widths))
    for row in cells:
        click.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))


@click.group()
def cli() -> None:
    """Ripplix Platform CLI."""
    setup_logging()


@cli.command()
def init_database() -> None:
    """Create all database tables."""
    deps = _get_cli_dependencies()
    click.echo("Initializing database...")
    asyncio.run(deps.create_tables())
    click.echo("Database initialized successfully!")


@cli.command()
def run_migrations() -> None:
    """Run database migrations."""
    deps = _get_cli_dependencies()

    click.echo("Running database migrations...")
    result = deps.subprocess_run(["alembic", "upgrade", "head"], capture_output=True, text=True)

    if result.returncode == 0:
        click.echo("Migrations completed successfully!")
        click.echo(result.stdout)
    else:
        click.echo("Migration failed!")
        click.echo(result.stderr)
        sys.exit(1)


@cli.command(name="subscriptions:handle-expired")
@click.option("--notify", is_flag=True, help="Also notify users whose plan expires soon")
def handle_expired(notify: bool) -> None:
    """Downgrade expired subscriptions to the free plan."""
    deps = _get_cli_dependencies()

    async def _handle() -> int:
        processor = deps.expiry_processor_factory()
        now = deps.clock()

        try:
            analytics = await processor.analytics(now)
            click.echo("=== Subscription Analytics ===")
            _echo_table(
                ["Metric", "Count"],
                [
                    ["Active paid subscriptions", analytics.active_paid],
                    ["Expiring soon", analytics.expiring_soon],
                    ["Expired pending downgrade", analytics.expired_pending_downgrade],
                    ["Monthly subscribers", analytics.monthly_subscribers],
                    ["Yearly subscribers", analytics.yearly_subscribers],
                    ["Lifetime subscribers", analytics.lifetime_subscribers],
                    ["Free members", analytics.free_members],
                ],
            )

            click.echo("")
            click.echo("Processing expired subscriptions...")
            result = await processor.run(now)
        except BillingConfigurationError as e:
            click.echo(f"Configuration error: {e.message}", err=True)
            return 1
        except ExpiryQueryError as e:
            click.echo(f"Could not load expired subscriptions: {e.message}", err=True)
            return 1

        click.echo(f"Total expired: {result.total}")
        click.echo(f"Downgraded: {result.downgraded}")
        click.echo(f"Failed: {result.failed}")
        if result.pending:
            click.echo(f"Pending (run deadline reached): {result.pending}")
        if result.failed_user_ids:
            click.echo(f"Failed user IDs: {', '.join(map(str, result.failed_user_ids))}")

        if notify:
            notices = await processor.send_expiry_notifications(now)
            click.echo(f"Expiry notifications sent: {notices.sent}, failed: {notices.failed}")

        revenue = await processor.monthly_recurring_revenue(now)
        click.echo(
            f"Monthly recurring revenue: {revenue.monthly_recurring_revenue:.2f} {revenue.currency}"
        )
        return 0

    exit_code = asyncio.run(_handle())
    if exit_code:
        sys.exit(exit_code)


@cli.command(name="payments:debug")
@click.argument("user_id", type=int, required=False)
def debug_payments(user_id: int | None) -> None:
    """Show payments whose plan is not reflected on the payer and offer repairs."""
    deps = _get_cli_dependencies()

    async def _debug_user(reconciler: PaymentReconciler, target_id: int) -> None:
        try:
            history = await reconciler.user_history(target_id)
        except UserNotFoundError:
            click.echo(f"User {target_id} not found", err=True)
            return

        click.echo(f"=== User {history.user_id} Debug Info ===")
        click.echo(f"Name: {history.name}")
        click.echo(f"Email: {history.email}")
        click.echo(f"Current Plan ID: {history.state.plan_id or '-'}")
        click.echo(f"Plan Updated: {_format_dt(history.state.started_at)}")
        click.echo(f"Plan Expires: {_format_dt(history.state.expires_at, 'never')}")
        if history.state.plan_id is None:
            click.echo("No pricing plan assigned!", err=True)

        click.echo("")
        click.echo("=== Recent Payments ===")
        if not history.payments:
            click.echo("No payments found for this user")
            return

        _echo_table(
            ["ID", "Plan", "Amount", "Status", "Gateway", "Paid At", "Created"],
            [
                [
                    payment.id,
                    payment.plan_name or "N/A",
                    payment.formatted_amount,
                    payment.status.value,
                    payment.gateway_slug or "N/A",
                    _format_dt(payment.paid_at, "Not paid"),
                    _format_dt(payment.created_at),
                ]
                for payment in history.payments
            ],
        )

        if not history.drifts:
            click.echo("")
            click.echo("All completed payments match the current plan")
            return

        report = ReconciliationReport(
            generated_at=deps.clock(),
            payments_checked=sum(
                1 for payment in history.payments if payment.status == PaymentStatus.COMPLETED
            ),
            drifts=history.drifts,
        )

        click.echo("")
        click.echo("=== Completed Payments Analysis ===")
        for drift in report.drifts:
            click.echo(f"Payment {drift.payment_id} completed but user plan differs!")
            click.echo(f"  Expected Plan: {drift.expected_plan_id}")
            click.echo(f"  Current Plan: {drift.actual_plan_id or '-'}")
            click.echo(f"  Payment Date: {_format_dt(drift.paid_at)}")

        fixes = propose_fixes(report)
        proposed = {fix.payment_id for fix in fixes}
        skipped = [drift.payment_id for drift in report.drifts if drift.payment_id not in proposed]
        if skipped:
            click.echo(
                f"Skipping payment(s) {', '.join(map(str, skipped))}: "
                "only the latest completed payment is re-applied"
            )

        for fix in fixes:
            if click.confirm(
                f"Fix payment {fix.payment_id}? This will set the user's plan to {fix.plan_id}.",
                default=False,
            ):
                outcome = await reconciler.apply_fixes([fix])
                if outcome.applied:
                    click.echo(f"User plan updated to {fix.plan_id}")
                else:
                    click.echo(f"Failed to apply payment {fix.payment_id}", err=True)

    async def _debug_recent(reconciler: PaymentReconciler) -> None:
        hours = settings.subscriptions.reconciliation_lookback_hours
        now = deps.clock()

        click.echo("=== Recent Payments Debug ===")
        payments = await reconciler.recent_payments(hours, now)
        if not payments:
            click.echo(f"No payments in the last {hours} hours")
            return

        report = await reconciler.audit_recent(hours, now)
        drifting = {drift.payment_id for drift in report.drifts}

        def plan_applied(payment_id: int, status: PaymentStatus) -> str:
            if status != PaymentStatus.COMPLETED:
                return "-"
            return "No" if payment_id in drifting else "Yes"

        _echo_table(
            ["ID", "User", "Plan", "Amount", "Status", "User Plan Updated?", "Created"],
            [
                [
                    payment.id,
                    payment.user_id,
                    payment.plan_name or "N/A",
                    payment.formatted_amount,
                    payment.status.value,
                    plan_applied(payment.id, payment.status),
                    _format_dt(payment.created_at),
                ]
                for payment in payments
            ],
        )

        click.echo("")
        if not report.has_drift:
            click.echo("All completed payments have correct user plans")
            return

        click.echo(
            f"Found {report.drift_count} completed payments where user plan wasn't updated!",
            err=True,
        )
        fixes = propose_fixes(report)
        if fixes and click.confirm(f"Fix {len(fixes)} user plan(s)?", default=False):
            outcome = await reconciler.apply_fixes(fixes)
            click.echo(f"Fixed: {outcome.applied}, failed: {outcome.failed}")

    async def _debug() -> None:
        reconciler = deps.reconciler_factory()
        if user_id is not None:
            await _debug_user(reconciler, user_id)
        else:
            await _debug_recent(reconciler)

    asyncio.run(_debug())


if __name__ == "__main__":
    cli()
