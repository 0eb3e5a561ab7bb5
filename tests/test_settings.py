"""Tests for centralized settings."""

import pytest
from pydantic import ValidationError

from ripplix.platform.settings import Environment, Settings, get_settings, reset_settings

pytestmark = pytest.mark.unit


class TestSubscriptionSettings:
    def test_defaults(self):
        subscriptions = Settings.SubscriptionSettings()

        assert subscriptions.free_plan_slug == "free-member"
        assert subscriptions.visitor_plan_slug == "visitor"
        assert subscriptions.expiring_soon_days == 7
        assert subscriptions.reconciliation_lookback_hours == 24
        assert subscriptions.expiry_run_timeout_seconds is None

    def test_nested_environment_override(self, monkeypatch):
        monkeypatch.setenv("SUBSCRIPTIONS__FREE_PLAN_SLUG", "starter")
        monkeypatch.setenv("SUBSCRIPTIONS__EXPIRY_CONCURRENCY", "8")

        settings = Settings()

        assert settings.subscriptions.free_plan_slug == "starter"
        assert settings.subscriptions.expiry_concurrency == 8

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings.SubscriptionSettings(expiry_concurrency=0)


class TestEnvironment:
    def test_environment_is_case_insensitive(self):
        assert Settings(environment="PRODUCTION").is_production is True

    def test_test_environment(self):
        settings = Settings(environment=Environment.TEST, testing=False)

        assert settings.is_testing is True
        assert settings.is_development is False


def test_get_settings_is_cached_until_reset():
    first = get_settings()
    assert get_settings() is first

    reset_settings()

    assert get_settings() is not first
