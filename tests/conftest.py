# mypy: disable-error-code="no-untyped-def"
"""
Shared fixtures for the membership test-suite.

Every test gets a fresh in-memory SQLite database with the plans most tests
need already seeded.
"""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from decimal import Decimal

# Set test environment before settings are imported
os.environ["ENVIRONMENT"] = "test"
os.environ["TESTING"] = "1"
os.environ.setdefault("OBSERVABILITY__LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import ripplix.platform.models  # noqa: F401
from ripplix.platform.billing.entities import (
    UNLIMITED_SENTINEL,
    PaymentGatewayTable,
    PaymentTable,
    PricingPlanTable,
)
from ripplix.platform.billing.plans.models import Plan
from ripplix.platform.db import Base
from ripplix.platform.user_management.models import UserTable

PLAN_ROWS = [
    {
        "slug": "visitor",
        "name": "Visitor",
        "price": Decimal("0"),
        "billing_period": "free",
        "max_boards": 0,
        "max_libraries_per_board": 0,
        "can_share": False,
        "sort_order": 0,
    },
    {
        "slug": "free-member",
        "name": "Free Member",
        "price": Decimal("0"),
        "billing_period": "free",
        "max_boards": 3,
        "max_libraries_per_board": 6,
        "can_share": False,
        "sort_order": 1,
    },
    {
        "slug": "pro-monthly",
        "name": "Pro Monthly",
        "price": Decimal("9.99"),
        "billing_period": "monthly",
        "max_boards": UNLIMITED_SENTINEL,
        "max_libraries_per_board": UNLIMITED_SENTINEL,
        "can_share": True,
        "student_discount_percentage": 50,
        "sort_order": 2,
    },
    {
        "slug": "pro-yearly",
        "name": "Pro Yearly",
        "price": Decimal("99.00"),
        "billing_period": "yearly",
        "max_boards": UNLIMITED_SENTINEL,
        "max_libraries_per_board": UNLIMITED_SENTINEL,
        "can_share": True,
        "sort_order": 3,
    },
    {
        "slug": "lifetime-pro",
        "name": "Lifetime Pro",
        "price": Decimal("249.00"),
        "billing_period": "lifetime",
        "max_boards": UNLIMITED_SENTINEL,
        "max_libraries_per_board": UNLIMITED_SENTINEL,
        "can_share": True,
        "sort_order": 4,
    },
]


@pytest_asyncio.fixture
async def async_db_engine():
    """Async in-memory database engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Required for SQLite in-memory async
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_db_engine):
    """Factory of short-lived sessions, shaped like ``get_async_db``."""
    maker = async_sessionmaker(async_db_engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory() -> AsyncIterator[AsyncSession]:
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest_asyncio.fixture
async def plans(session_factory) -> dict[str, Plan]:
    """Seeded pricing plans keyed by slug."""
    async with session_factory() as session:
        rows = [PricingPlanTable(is_active=True, currency="USD", **data) for data in PLAN_ROWS]
        session.add_all(rows)
        await session.flush()
        seeded = {row.slug: Plan.from_entity(row) for row in rows}
    return seeded


@pytest.fixture
def create_user(session_factory):
    """Insert a user and return its id."""
    counter = {"value": 0}

    async def _create(
        plan: Plan | None = None,
        started_at: datetime | None = None,
        expires_at: datetime | None = None,
        is_active: bool = True,
    ) -> int:
        counter["value"] += 1
        async with session_factory() as session:
            user = UserTable(
                name=f"User {counter['value']}",
                email=f"user{counter['value']}@example.com",
                is_active=is_active,
                pricing_plan_id=plan.id if plan else None,
                plan_updated_at=started_at,
                plan_expires_at=expires_at,
            )
            session.add(user)
            await session.flush()
            return user.id

    return _create


@pytest.fixture
def create_payment(session_factory):
    """Insert a payment and return its id."""
    counter = {"value": 0}

    async def _create(
        user_id: int,
        plan: Plan,
        status: str = "completed",
        paid_at: datetime | None = None,
        created_at: datetime | None = None,
        gateway_id: int | None = None,
    ) -> int:
        counter["value"] += 1
        async with session_factory() as session:
            payment = PaymentTable(
                transaction_id=f"TXN-{counter['value']:04d}",
                user_id=user_id,
                pricing_plan_id=plan.id,
                payment_gateway_id=gateway_id,
                amount=plan.price,
                currency=plan.currency,
                status=status,
                paid_at=paid_at,
                created_at=created_at or paid_at or datetime.now(UTC),
            )
            session.add(payment)
            await session.flush()
            return payment.id

    return _create


@pytest.fixture
def create_gateway(session_factory):
    async def _create(slug: str, is_active: bool = False, provider: str = "stripe") -> int:
        async with session_factory() as session:
            gateway = PaymentGatewayTable(
                slug=slug, name=slug.title(), provider=provider, is_active=is_active
            )
            session.add(gateway)
            await session.flush()
            return gateway.id

    return _create


@pytest.fixture
def load_user(session_factory):
    async def _load(user_id: int) -> UserTable:
        async with session_factory() as session:
            return await session.get(UserTable, user_id)

    return _load
