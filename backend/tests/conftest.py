"""
Centralized Test Configuration.
"""

import os

# Point the application at SQLite before its settings are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LEDGER_LOCK_BACKEND", "local")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.jwt import create_user_token
from backend.app.domain.actor import Actor
from backend.app.models.category import Category
from backend.app.models.enums import UserRole
from backend.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Route the app's sessions to the test database for the whole run."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Each test runs on its own event loop; start the next one with a fresh connection
    await engine.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return TestingSessionLocal


async def _create_user(email, first_name, role):
    # Own session: fixture rows stay loaded whatever a test's session rolls back
    async with TestingSessionLocal() as session:
        user = User(email=email, first_name=first_name, last_name="Test", role=role, is_active=True)
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def admin_user():
    return await _create_user("admin@household.test", "Asha", UserRole.ADMIN)


@pytest.fixture
async def member_user():
    return await _create_user("ravi@household.test", "Ravi", UserRole.MEMBER)


@pytest.fixture
async def other_member():
    return await _create_user("meera@household.test", "Meera", UserRole.MEMBER)


@pytest.fixture
def admin_actor(admin_user):
    return Actor(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def member_actor(member_user):
    return Actor(user_id=member_user.id, role=UserRole.MEMBER)


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_user_token(admin_user)}"}


@pytest.fixture
def member_headers(member_user):
    return {"Authorization": f"Bearer {create_user_token(member_user)}"}


@pytest.fixture
def other_member_headers(other_member):
    return {"Authorization": f"Bearer {create_user_token(other_member)}"}


@pytest.fixture
async def categories():
    """A small category set; expenses must reference one of these."""
    async with TestingSessionLocal() as session:
        rows = [Category(name="Groceries", icon="shopping-cart"), Category(name="Dining", icon="utensils")]
        session.add_all(rows)
        await session.commit()
        return rows
