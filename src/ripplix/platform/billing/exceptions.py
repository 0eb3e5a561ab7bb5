"""
Billing system exceptions.

Custom exceptions for plan, subscription and payment operations with clear
error messages, machine-readable codes and recovery hints.
"""

from typing import Any


class BillingError(Exception):
    """
    Base billing system error with enhanced context.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for API responses
        status_code: HTTP status code for this error type
        context: Additional context data about the error
        recovery_hint: Suggested action to resolve the error
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        self.message = message
        self.error_code = error_code or "BILLING_ERROR"
        self.status_code = status_code
        self.context = context or {}
        self.recovery_hint = recovery_hint
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "recovery_hint": self.recovery_hint,
        }


class BillingConfigurationError(BillingError):
    """Billing configuration is incomplete, e.g. no free plan to downgrade into."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        recovery_hint: str | None = None,
    ):
        context = {"config_key": config_key} if config_key else {}
        super().__init__(
            message,
            "CONFIGURATION_ERROR",
            status_code=500,
            context=context,
            recovery_hint=recovery_hint or "Check billing configuration and seeded plans",
        )


class PlanError(BillingError):
    """Pricing plan errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message, "PLAN_ERROR", status_code=400, context=context, recovery_hint=recovery_hint
        )


class PlanNotFoundError(PlanError):
    """Plan not found or not active."""

    def __init__(
        self, message: str, plan_id: int | None = None, slug: str | None = None
    ) -> None:
        context: dict[str, Any] = {}
        if plan_id is not None:
            context["plan_id"] = plan_id
        if slug:
            context["slug"] = slug

        super().__init__(
            message,
            context=context,
            recovery_hint="Verify the plan ID or slug and ensure the plan is active",
        )
        self.error_code = "PLAN_NOT_FOUND"
        self.status_code = 404


class PlanInUseError(PlanError):
    """Plan cannot be deleted while it is still referenced."""

    def __init__(self, message: str, slug: str, user_count: int = 0) -> None:
        super().__init__(
            message,
            context={"slug": slug, "user_count": user_count},
            recovery_hint="Move users to another plan (or disable visitor tracking) first",
        )
        self.error_code = "PLAN_IN_USE"
        self.status_code = 409


class SubscriptionError(BillingError):
    """Subscription-related errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(
            message,
            "SUBSCRIPTION_ERROR",
            status_code=400,
            context=context,
            recovery_hint=recovery_hint,
        )


class InvalidSubscriptionPeriodError(SubscriptionError):
    """Plan/expiry combination breaks the billing-period invariant."""

    def __init__(self, message: str, plan_slug: str, billing_period: str) -> None:
        super().__init__(
            message,
            context={"plan_slug": plan_slug, "billing_period": billing_period},
            recovery_hint="Free and lifetime plans never expire; monthly and yearly plans must",
        )
        self.error_code = "INVALID_SUBSCRIPTION_PERIOD"


class SubscriptionUpdateError(SubscriptionError):
    """A single user's plan change failed; batch runs skip the user and continue."""

    def __init__(self, message: str, user_id: int) -> None:
        super().__init__(
            message,
            context={"user_id": user_id},
            recovery_hint="Retry on the next run or inspect the user row",
        )
        self.error_code = "SUBSCRIPTION_UPDATE_FAILED"
        self.status_code = 409


class UserNotFoundError(SubscriptionError):
    """User not found."""

    def __init__(self, message: str, user_id: int) -> None:
        super().__init__(message, context={"user_id": user_id})
        self.error_code = "USER_NOT_FOUND"
        self.status_code = 404


class ExpiryQueryError(SubscriptionError):
    """Candidate selection for the expiry run failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, recovery_hint="Check database connectivity and retry the run")
        self.error_code = "EXPIRY_QUERY_FAILED"
        self.status_code = 503


class PaymentError(BillingError):
    """Payment processing errors."""

    def __init__(
        self,
        message: str,
        payment_id: int | None = None,
        context: dict[str, Any] | None = None,
        recovery_hint: str | None = None,
    ):
        context = dict(context or {})
        if payment_id is not None:
            context["payment_id"] = payment_id
        super().__init__(
            message,
            "PAYMENT_ERROR",
            status_code=402,
            context=context,
            recovery_hint=recovery_hint,
        )


class PaymentNotFoundError(PaymentError):
    """Payment not found."""

    def __init__(self, message: str, payment_id: int) -> None:
        super().__init__(message, payment_id=payment_id)
        self.error_code = "PAYMENT_NOT_FOUND"
        self.status_code = 404


class PaymentNotCompletedError(PaymentError):
    """Plan application requested for a payment that is not completed."""

    def __init__(self, message: str, payment_id: int, status: str) -> None:
        super().__init__(
            message,
            payment_id=payment_id,
            context={"status": status},
            recovery_hint="Only completed payments with a paid_at timestamp can be applied",
        )
        self.error_code = "PAYMENT_NOT_COMPLETED"
        self.status_code = 409


class PaymentGatewayConfigurationError(BillingConfigurationError):
    """Zero or several payment gateways are flagged active."""

    def __init__(self, message: str, active_slugs: list[str]) -> None:
        super().__init__(
            message,
            config_key="payment_gateways.is_active",
            recovery_hint="Flag exactly one payment gateway as active",
        )
        self.context["active_slugs"] = active_slugs
        self.error_code = "PAYMENT_GATEWAY_CONFIGURATION_ERROR"


__all__ = [
    "BillingError",
    "BillingConfigurationError",
    "PlanError",
    "PlanNotFoundError",
    "PlanInUseError",
    "SubscriptionError",
    "InvalidSubscriptionPeriodError",
    "SubscriptionUpdateError",
    "UserNotFoundError",
    "ExpiryQueryError",
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentNotCompletedError",
    "PaymentGatewayConfigurationError",
]
