"""Tests for the scheduled membership tasks."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ripplix.platform.billing.payments import DriftRecord, ReconciliationReport
from ripplix.platform.billing.subscriptions import ExpiryRunResult, NotificationResult
from ripplix.platform.tasks import (
    audit_recent_payments_task,
    handle_expired_subscriptions_task,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def dispose_engine():
    with patch("ripplix.platform.tasks.dispose_engine", new_callable=AsyncMock) as mock_dispose:
        yield mock_dispose


class TestHandleExpiredTask:
    @patch("ripplix.platform.tasks.ExpiryProcessor")
    def test_returns_run_summary(self, mock_processor_cls, dispose_engine):
        processor = MagicMock()
        processor.run = AsyncMock(
            return_value=ExpiryRunResult(total=3, downgraded=2, failed=1, failed_user_ids=[9])
        )
        processor.send_expiry_notifications = AsyncMock()
        mock_processor_cls.return_value = processor

        with patch("ripplix.platform.tasks.settings") as mock_settings:
            mock_settings.subscriptions.notify_on_scheduled_run = False
            summary = handle_expired_subscriptions_task()

        assert summary == {"status": "ok", "total": 3, "downgraded": 2, "failed": 1, "pending": 0}
        processor.send_expiry_notifications.assert_not_awaited()
        dispose_engine.assert_awaited_once()

    @patch("ripplix.platform.tasks.ExpiryProcessor")
    def test_sends_notifications_when_enabled(self, mock_processor_cls, dispose_engine):
        processor = MagicMock()
        processor.run = AsyncMock(return_value=ExpiryRunResult())
        processor.send_expiry_notifications = AsyncMock(
            return_value=NotificationResult(sent=4, failed=1)
        )
        mock_processor_cls.return_value = processor

        with patch("ripplix.platform.tasks.settings") as mock_settings:
            mock_settings.subscriptions.notify_on_scheduled_run = True
            summary = handle_expired_subscriptions_task()

        assert summary["notifications"] == {"sent": 4, "failed": 1}

    @patch("ripplix.platform.tasks.ExpiryProcessor")
    def test_engine_disposed_on_failure(self, mock_processor_cls, dispose_engine):
        processor = MagicMock()
        processor.run = AsyncMock(side_effect=RuntimeError("database unavailable"))
        mock_processor_cls.return_value = processor

        with pytest.raises(RuntimeError):
            handle_expired_subscriptions_task()

        dispose_engine.assert_awaited_once()


class TestAuditRecentTask:
    @patch("ripplix.platform.tasks.PaymentReconciler")
    def test_report_only_summary(self, mock_reconciler_cls, dispose_engine):
        reconciler = MagicMock()
        reconciler.audit_recent = AsyncMock(
            return_value=ReconciliationReport(
                generated_at=datetime(2024, 3, 2, 8, 0, tzinfo=UTC),
                payments_checked=5,
                drifts=[
                    DriftRecord(
                        payment_id=12,
                        user_id=7,
                        expected_plan_id=4,
                        actual_plan_id=2,
                        paid_at=None,
                    )
                ],
            )
        )
        reconciler.apply_fixes = AsyncMock()
        mock_reconciler_cls.return_value = reconciler

        with patch("ripplix.platform.tasks.settings") as mock_settings:
            mock_settings.subscriptions.reconciliation_lookback_hours = 48
            summary = audit_recent_payments_task()

        assert summary == {"status": "ok", "payments_checked": 5, "drift_count": 1}
        reconciler.audit_recent.assert_awaited_once_with(48)
        reconciler.apply_fixes.assert_not_awaited()
        dispose_engine.assert_awaited_once()
