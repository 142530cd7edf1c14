import pytest
import pytest_asyncio
import os

# Set dummy environment variables for testing before importing the app
os.environ["AUTH_SESSION_SECRET"] = "fake_session_secret"
os.environ["DATABASE_URL"] = ""
os.environ["STREAK_TIMEZONE"] = "UTC"

from httpx import AsyncClient, ASGITransport
from fitmemory.main import app
from fitmemory.db import db


@pytest_asyncio.fixture
async def client():
    # Use ASGITransport for FastAPI testing
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(autouse=True)
async def mock_db_pool(monkeypatch):
    """Mock database pool to avoid real connections during tests."""
    class MockPool:
        def acquire(self, timeout=None):
            class MockAcquireContext:
                async def __aenter__(self):
                    class MockConn:
                        async def execute(self, query, *args):
                            return "OK"
                        async def fetchrow(self, query, *args):
                            return None
                        async def fetchval(self, query, *args):
                            return 0
                    return MockConn()
                async def __aexit__(self, exc_type, exc_val, exc_tb):
                    pass
            return MockAcquireContext()
        async def close(self):
            pass

    mock_pool = MockPool()
    monkeypatch.setattr(db, "pool", mock_pool)
    return mock_pool
