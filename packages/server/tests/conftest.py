"""
Shared fixtures: a fresh in-memory SQLite database per test and an HTTP
client bound to the app with the session dependency pointed at it.
"""

import os

# Must be set before logbook_api is imported; the module-level engine reads it
os.environ.setdefault("LOGBOOK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOGBOOK_LOG_LEVEL", "warning")
os.environ.setdefault("LOGBOOK_LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import logbook_api.models  # noqa: F401  registers tables on the metadata
from logbook_api.core.auth import create_jwt
from logbook_api.core.database import (
    enable_sqlite_foreign_keys,
    get_session,
    make_session_factory,
)
from logbook_api.main import app

ALICE = "user_alice_0001"
BOB = "user_bob_0002"


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s
        await s.commit()


@pytest.fixture
async def client(session_factory):
    """App client whose requests each get a committed session on the test database."""

    async def _get_test_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers():
    return {"Authorization": f"Bearer {create_jwt(ALICE)}"}


@pytest.fixture
def bob_headers():
    return {"Authorization": f"Bearer {create_jwt(BOB)}"}


@pytest.fixture
def establishment_payload():
    return {
        "name": "Acme Manufacturing",
        "address": "100 Industrial Way",
        "city": "Fresno",
        "state": "CA",
        "zip_code": "93721",
        "naics_code": "332710",
        "industry_description": "Machine shops",
        "average_employees": 42,
    }
