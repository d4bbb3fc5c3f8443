"""Test configuration and fixtures.

Services are exercised against ``MagicMock`` database and cache doubles whose
query methods are ``AsyncMock``; ``db.transaction()`` yields the same mock so
a test scripts every call through one ``side_effect`` list. Redis-backed code
runs against ``fakeredis``.
"""

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

from vehicle_cover.core.cache import Cache, CacheConfig
from vehicle_cover.core.config import clear_settings_cache
from vehicle_cover.core.security import reset_security
from vehicle_cover.models.user import Principal, Role

Row = dict[str, Any]
RowFactory = Callable[..., Row]

NOW = datetime(2025, 6, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_singletons() -> None:
    """Settings and token security are module-level caches."""
    clear_settings_cache()
    reset_security()


@pytest.fixture
def mock_db() -> MagicMock:
    """Database double; ``transaction()`` hands back the same mock."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="UPDATE 1")

    @asynccontextmanager
    async def transaction() -> AsyncIterator[MagicMock]:
        yield db

    db.transaction = transaction
    return db


@pytest.fixture
def mock_cache() -> MagicMock:
    """Mock cache for testing."""
    cache = MagicMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=True)
    cache.publish = AsyncMock(return_value=1)
    return cache


@pytest.fixture
def mock_notifier() -> MagicMock:
    notifier = MagicMock()
    notifier.notify = AsyncMock(return_value=True)
    return notifier


@pytest_asyncio.fixture
async def fake_redis() -> AsyncGenerator[FakeAsyncRedis, None]:
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def redis_cache(fake_redis: FakeAsyncRedis) -> Cache:
    """Real :class:`Cache` wired to fakeredis."""
    return Cache(fake_redis, CacheConfig(url="redis://fake", default_ttl=60))


@pytest.fixture
def customer_id() -> UUID:
    return uuid4()


@pytest.fixture
def customer_principal(customer_id: UUID) -> Principal:
    return Principal(user_id=uuid4(), role=Role.CUSTOMER, customer_id=customer_id)


@pytest.fixture
def other_customer_principal() -> Principal:
    return Principal(user_id=uuid4(), role=Role.CUSTOMER, customer_id=uuid4())


@pytest.fixture
def staff_principal() -> Principal:
    return Principal(user_id=uuid4(), role=Role.STAFF)


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(user_id=uuid4(), role=Role.ADMIN)


# Row factories. Each returns a callable building a database row (a dict) with
# sensible defaults; keyword arguments override individual columns.


@pytest.fixture
def customer_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": customer_id,
            "customer_code": "CUST-00001",
            "name": "Asha Verma",
            "email": "asha@example.com",
            "contact_number": "9876543210",
            "address": "12 MG Road, Pune",
            "is_active": True,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def user_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "name": "Asha Verma",
            "email": "asha@example.com",
            "password_hash": "",
            "role": Role.CUSTOMER.value,
            "customer_id": customer_id,
            "is_active": True,
            "last_login_at": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def vehicle_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "customer_id": customer_id,
            "vehicle_number": "MH12AB1234",
            "vehicle_type": "4-Wheeler",
            "model": "Hyundai i20",
            "registration_year": date.today().year - 3,
            "deleted_at": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def policy_row() -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "policy_code": "POL-00001",
            "name": "Comprehensive Shield",
            "description": "Full cover for private cars",
            "coverage_type": "Comprehensive",
            "base_amount": Decimal("1000.00"),
            "policy_duration_months": 12,
            "is_active": True,
            "premium_rules": {
                "vehicle_type_multiplier": {
                    "2-Wheeler": 0.8,
                    "4-Wheeler": 2.5,
                    "Commercial": 1.5,
                },
                "coverage_multiplier": {
                    "Comprehensive": 1.2,
                    "Third-Party": 0.6,
                    "Own-Damage": 0.8,
                },
                "age_depreciation_rate": 0.05,
                "base_rate": 1.0,
            },
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def premium_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "premium_code": "PREM-00001",
            "customer_id": customer_id,
            "vehicle_id": uuid4(),
            "policy_id": uuid4(),
            "coverage_type": "Comprehensive",
            "calculated_amount": Decimal("2550.00"),
            "payment_status": "Pending",
            "calculation_breakdown": {
                "base_amount": "1000.00",
                "vehicle_type": "4-Wheeler",
                "vehicle_type_multiplier": 2.5,
                "coverage_type": "Comprehensive",
                "coverage_multiplier": 1.2,
                "vehicle_age_years": 3,
                "age_depreciation_percent": 15.0,
                "final_amount": "2550.00",
            },
            "policy_duration_months": 12,
            "transaction_id": None,
            "payment_date": None,
            "expiry_date": None,
            "is_expired": False,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def paid_premium_row(premium_row: RowFactory) -> RowFactory:
    """Paid record whose coverage is still running."""

    def make(**overrides: Any) -> Row:
        paid_at = datetime.now(timezone.utc) - timedelta(days=30)
        defaults = {
            "payment_status": "Paid",
            "transaction_id": "TXN-ABC123",
            "payment_date": paid_at,
            "expiry_date": paid_at + timedelta(days=365),
        }
        defaults.update(overrides)
        return premium_row(**defaults)

    return make


@pytest.fixture
def renewal_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "renewal_code": "REN-00001",
            "premium_id": uuid4(),
            "customer_id": customer_id,
            "renewal_status": "Pending",
            "renewal_date": NOW,
            "expiry_date": NOW + timedelta(days=20),
            "reminder_sent_status": False,
            "reminder_sent_date": None,
            "admin_remarks": None,
            "processed_at": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def claim_row(customer_id: UUID) -> RowFactory:
    def make(**overrides: Any) -> Row:
        row = {
            "id": uuid4(),
            "claim_code": "CLM-00001",
            "premium_id": uuid4(),
            "customer_id": customer_id,
            "vehicle_id": uuid4(),
            "policy_id": uuid4(),
            "claim_status": "Pending",
            "claim_reason": "Rear bumper damaged in a parking lot collision",
            "claim_amount": None,
            "admin_remarks": None,
            "claim_date": NOW,
            "processed_date": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        row.update(overrides)
        return row

    return make
