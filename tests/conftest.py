"""
Shared pytest fixtures for unit tests.

All tests run with ``USE_SQLITE=true`` and mocked or in-memory backends so
that no real database or network I/O is needed.
"""

import os

os.environ.setdefault("USE_SQLITE", "true")

from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from globaledge.integration.backends import MockBackend  # noqa: E402
from globaledge.integration.entities import EntityDefinition  # noqa: E402
from globaledge.integration.mock_data import MockDataStore  # noqa: E402
from globaledge.integration.router import SourceRouter  # noqa: E402
from globaledge.integration.sources import READ_FALLBACK, FallbackPolicy  # noqa: E402
from globaledge.models.asset import Asset, AssetRisk, AssetStatus, AssetType  # noqa: E402
from globaledge.models.investment import Investment, PaymentStatus  # noqa: E402
from globaledge.models.user import KycStatus, User, UserRole  # noqa: E402
from globaledge.models.waitlist import WaitlistStatus, WaitlistSubmission  # noqa: E402
from globaledge.services.entity_service import EntityService  # noqa: E402

# ────────────────────────────────────────────────────────────────────────────
# Factory helpers: domain objects with sensible defaults
# ────────────────────────────────────────────────────────────────────────────

USER_ID = "user-test-1"
ASSET_ID = "asset-test-1"
INVESTMENT_ID = "investment-test-1"
SUBMISSION_ID = "waitlist-test-1"
CREATED = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_user(
    *,
    id: str = USER_ID,
    email: str = "amira@example.com",
    first_name: str = "Amira",
    last_name: str = "Haddad",
    country: str = "United Arab Emirates",
    role: UserRole = UserRole.INVESTOR,
    kyc_status: KycStatus = KycStatus.NOT_STARTED,
    total_invested: Decimal = Decimal("0"),
    created_at: Optional[datetime] = None,
) -> User:
    """Create a User domain object with sensible test defaults."""
    return User(
        id=id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        country=country,
        role=role,
        kyc_status=kyc_status,
        total_invested=total_invested,
        created_at=created_at or CREATED,
        updated_at=created_at or CREATED,
    )


def make_asset(
    *,
    id: str = ASSET_ID,
    name: str = "Jebel Ali-Dubai Container",
    type: AssetType = AssetType.CONTAINER,
    description: str = "Electronics container route from Jebel Ali Port to Dubai.",
    value: Decimal = Decimal("45000"),
    apr: Decimal = Decimal("12.5"),
    risk: AssetRisk = AssetRisk.MEDIUM,
    status: AssetStatus = AssetStatus.FUNDING,
    funded_percentage: Decimal = Decimal("40"),
    created_at: Optional[datetime] = None,
) -> Asset:
    """Create an Asset domain object with sensible test defaults."""
    return Asset(
        id=id,
        name=name,
        type=type,
        description=description,
        value=value,
        apr=apr,
        risk=risk,
        status=status,
        funded_percentage=funded_percentage,
        created_at=created_at or CREATED,
        updated_at=created_at or CREATED,
    )


def make_investment(
    *,
    id: str = INVESTMENT_ID,
    user_id: str = USER_ID,
    asset_id: str = ASSET_ID,
    amount: Decimal = Decimal("1000"),
    tokens: int = 10,
    payment_status: PaymentStatus = PaymentStatus.PENDING,
    kyc_completed: bool = False,
    created_at: Optional[datetime] = None,
) -> Investment:
    """Create an Investment domain object with sensible test defaults."""
    return Investment(
        id=id,
        user_id=user_id,
        asset_id=asset_id,
        amount=amount,
        tokens=tokens,
        payment_status=payment_status,
        kyc_completed=kyc_completed,
        created_at=created_at or CREATED,
        updated_at=created_at or CREATED,
    )


def make_submission(
    *,
    id: str = SUBMISSION_ID,
    email: str = "lead@example.com",
    status: WaitlistStatus = WaitlistStatus.NEW,
) -> WaitlistSubmission:
    """Create a WaitlistSubmission domain object with sensible test defaults."""
    return WaitlistSubmission(
        id=id,
        first_name="Omar",
        last_name="Saleh",
        email=email,
        phone="+971500000000",
        investor_type="accredited",
        token_interest="containers",
        heard_from="linkedin",
        investment_amount="10k-50k",
        status=status,
        submitted_at=CREATED,
    )


def waitlist_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "firstName": "Omar",
        "lastName": "Saleh",
        "email": "omar@example.com",
        "phone": "+971500000000",
        "investorType": "accredited",
        "tokenInterest": "containers",
        "heardFrom": "linkedin",
        "investmentAmount": "10k-50k",
    }
    payload.update(overrides)
    return payload


# ────────────────────────────────────────────────────────────────────────────
# Service wiring helpers
# ────────────────────────────────────────────────────────────────────────────


def mock_backend_for(entity: EntityDefinition, store: MockDataStore) -> MockBackend:
    return MockBackend(entity.name, entity.collection, entity.model, store, entity.unique_fields)


def failing_database() -> AsyncMock:
    """A database backend whose every call fails like a dropped connection."""
    database = AsyncMock()
    for name in ("get", "list", "create", "update"):
        getattr(database, name).side_effect = ConnectionError("database unreachable")
    return database


def make_service(
    entity: EntityDefinition,
    store: MockDataStore,
    database: Any = None,
    policy: FallbackPolicy = READ_FALLBACK,
    fallback_enabled: bool = True,
) -> EntityService:
    """An EntityService whose database backend defaults to the mock store itself.

    Pass ``database=failing_database()`` to exercise fallback and 503 paths.
    """
    mock = mock_backend_for(entity, store)
    router = SourceRouter(
        entity.collection,
        database=database if database is not None else mock,
        mock=mock,
        policy=policy,
        read_retries=0,
        fallback_enabled=fallback_enabled,
    )
    return EntityService(entity, router)


# ────────────────────────────────────────────────────────────────────────────
# Pytest fixtures
# ────────────────────────────────────────────────────────────────────────────


@pytest.fixture()
def empty_store() -> MockDataStore:
    return MockDataStore()


@pytest.fixture()
def seeded_store() -> MockDataStore:
    return MockDataStore.seeded(2024)


@pytest.fixture()
def mock_db():
    """A mocked AsyncSession that tracks add/commit/refresh/rollback calls."""
    session = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.merge = AsyncMock()
    return session


@pytest.fixture(autouse=True)
def _reset_circuit_breaker():
    """Keep the process-wide breaker closed between tests."""
    from globaledge.core.resilience import db_circuit_breaker

    db_circuit_breaker.reset()
    yield
    db_circuit_breaker.reset()
