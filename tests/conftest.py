from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fleet_tracking.models.orm.base import Base
from fleet_tracking.models.orm.company import Company  # noqa: F401 - registers table
from fleet_tracking.models.orm.entity import Entity  # noqa: F401 - registers table
from fleet_tracking.models.orm.order import Order  # noqa: F401 - registers table
from fleet_tracking.models.orm.tracking_number import TrackingNumber, TrackingStatus  # noqa: F401


# ── Pin tracking settings so tests don't depend on the environment ──────────
@pytest.fixture(autouse=True)
def _patch_settings(monkeypatch):
    from fleet_tracking.core.config import settings
    monkeypatch.setattr(settings, "tracking_default_region", "SG")
    monkeypatch.setattr(settings, "tracking_number_length", 10)
    monkeypatch.setattr(settings, "tracking_fallback_prefix", "FLB")
    monkeypatch.setattr(settings, "tracking_max_generation_attempts", 25)
    monkeypatch.setattr(settings, "tracking_max_insert_attempts", 3)
    monkeypatch.setattr(settings, "barcode_service_url", "")
    monkeypatch.setattr(settings, "barcode_service_api_key", "")


@pytest.fixture
def mock_db():
    """Create a mock async database session."""
    db = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    db.get = AsyncMock(return_value=None)
    db.execute = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.begin_nested = MagicMock()
    return db


@pytest.fixture
async def db_session():
    """A real AsyncSession on an in-memory SQLite database.

    pysqlite's implicit BEGIN is disabled so SAVEPOINTs nest inside a real
    outer transaction.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
