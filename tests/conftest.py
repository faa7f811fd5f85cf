"""Pytest configuration and fixtures."""

from datetime import date

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import carledger.models  # noqa: F401
from carledger.core.db import Base, get_db
from carledger.core.report_engine import build_report_engine
from carledger.main import create_app

# Fixed "today" for everything that defaults to the current period
TODAY = date(2025, 7, 15)


def fixed_today() -> date:
    return TODAY


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """File-backed SQLite database per test, with working SAVEPOINTs."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carledger_test.db'}")

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create fresh DB session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def report_engine(db_session):
    """Report engine on the test session, with today pinned to TODAY."""
    return build_report_engine(db_session, clock=fixed_today)


@pytest_asyncio.fixture
async def client(session_factory):
    """Async test client; every request gets its own committed session."""
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac
