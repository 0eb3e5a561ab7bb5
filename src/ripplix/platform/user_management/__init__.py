"""User management models."""

from ripplix.platform.user_management.models import UserTable

__all__ = ["UserTable"]
