"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.core.config import settings
from backend.app.core.identity import JWTAuthenticator
from backend.app.db.session import Database
from backend.app.domain.payments.gateway import FakePaymentGateway
from backend.app.models.enums import UserRole
import backend.app.core.redis_client as redis_client_module
from backend.tests.factories import auth_headers, create_user

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture(autouse=True)
def mock_redis(monkeypatch):
    """Patch the global redis client used by token revocation."""
    client = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", client)
    return client


@pytest.fixture
async def database():
    """Fresh in-memory database per test."""
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(db.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture(autouse=True)
def app_state(database, payment_gateway):
    """
    Wire app.state the way the lifespan does.

    ASGITransport does not run the lifespan, so the test database,
    authenticator and fake gateway are installed directly.
    """
    app.state.database = database
    app.state.authenticator = JWTAuthenticator(settings.identity_secret_key, settings.identity_algorithm)
    app.state.payment_gateway = payment_gateway
    yield app.state


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def admin_headers(db_session):
    await create_user(db_session, "admin@test.com", UserRole.ADMIN)
    return auth_headers("admin@test.com")


@pytest.fixture
async def rider_headers(db_session):
    await create_user(db_session, "rider@test.com", UserRole.RIDER, name="Rider One")
    return auth_headers("rider@test.com")
