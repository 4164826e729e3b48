"""Shared test fixtures for the HookRelay test suite.

Each test gets its own SQLite database file under tmp_path, so tests never
share rows.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from hookrelay.config import Settings
from hookrelay.database import create_all_tables
from hookrelay.main import create_app


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway SQLite database."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'hookrelay.db'}",
        AUTO_CREATE_TABLES=True,
        SENTRY_DSN=None,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(test_settings):
    """FastAPI app wired to the test settings."""
    return create_app(config=test_settings)


@pytest.fixture
def client(app):
    """TestClient with lifespan run, so tables exist."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app):
    """
    httpx AsyncClient talking to the app in-process.

    ASGITransport does not run lifespan, so tables are created here.
    """
    await create_all_tables(app.state.engine)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    await app.state.engine.dispose()


@pytest.fixture
async def db_session(app, async_client):
    """Session on the same database the async client writes to."""
    async with app.state.session_factory() as session:
        yield session
