"""
Central Model Registry

Imports every SQLAlchemy model so all tables are registered with
``Base.metadata`` before ``create_all`` or Alembic autogenerate runs.

Import this module early in application initialization or in test conftest.py.
"""

from ripplix.platform.billing.entities import (  # noqa: F401
    PaymentGatewayTable,
    PaymentTable,
    PricingPlanTable,
)
from ripplix.platform.boards.models import BoardLibraryTable, BoardTable  # noqa: F401
from ripplix.platform.user_management.models import UserTable  # noqa: F401

__all__ = [
    "BoardLibraryTable",
    "BoardTable",
    "PaymentGatewayTable",
    "PaymentTable",
    "PricingPlanTable",
    "UserTable",
]
