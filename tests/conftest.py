"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment so Settings() can be built in tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from commission_manager.config.settings import Settings
from commission_manager.database import (
    create_engine,
    create_session_maker,
    init_database,
)
from commission_manager.models.enums import LevelScope, PropertyType
from commission_manager.services.commission.store import CommissionStore
from commission_manager.services.person_service import PersonDirectory
from commission_manager.services.property_service import PropertyCatalog


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.delete = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'commissions.db'}",
        environment="test",
        commission_modes="flat_level,referral_chain",
    )


@pytest_asyncio.fixture
async def db_engine(test_settings):
    """Create engine with all tables, dispose after the test."""
    engine = create_engine(test_settings)
    await init_database(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine):
    """Session factory bound to the test engine."""
    return create_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker):
    """Provide a database session for each test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def directory(db_session) -> PersonDirectory:
    """PersonDirectory on the test session."""
    return PersonDirectory(db_session)


@pytest.fixture
def catalog(db_session) -> PropertyCatalog:
    """PropertyCatalog on the test session."""
    return PropertyCatalog(db_session)


@pytest.fixture
def store(db_session) -> CommissionStore:
    """CommissionStore on the test session."""
    return CommissionStore(db_session)


@pytest.fixture
def make_person(directory):
    """Factory creating people with generated contact data."""

    async def _make_person(username: str, referred_by: int | None = None):
        return await directory.create_person(
            username=username,
            first_name=username.capitalize(),
            last_name="Agent",
            email=f"{username}@example.com",
            referred_by=referred_by,
        )

    return _make_person


@pytest_asyncio.fixture
async def chain_ids(make_person):
    """
    Chain root D <- C <- B <- A, as person IDs.

    A is the seller; B referred A, C referred B, D referred C.
    """
    d = await make_person("dora")
    c = await make_person("carl", referred_by=d.id)
    b = await make_person("bella", referred_by=c.id)
    a = await make_person("alex", referred_by=b.id)
    return {"a": a.id, "b": b.id, "c": c.id, "d": d.id}


@pytest_asyncio.fixture
async def property_id(catalog, chain_ids):
    """ID of a residential property of 500000 sold by A."""
    prop = await catalog.create_property(
        price=Decimal("500000"),
        property_type=PropertyType.RESIDENTIAL,
        property_name="Maple House",
        address="12 Maple Street",
        sold_by=chain_ids["a"],
    )
    return prop.id


@pytest_asyncio.fixture
async def referral_levels(store, db_session):
    """Referral levels {1: 3.0, 2: 1.5}."""
    await store.upsert_level(LevelScope.REFERRAL, 1, Decimal("3.0"))
    await store.upsert_level(LevelScope.REFERRAL, 2, Decimal("1.5"))
    await db_session.commit()
