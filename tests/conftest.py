"""
Shared test fixtures for the user directory test suite.

Each test gets its own in-memory SQLite database (aiosqlite + StaticPool)
and the app's ``get_db`` dependency is pointed at it.
"""

import os
import sys
import uuid as uuid_lib
from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CORS_ORIGINS"] = '["*"]'

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from user_directory.api.deps import get_db
from user_directory.core.security import build_claims, get_password_hash, issue_token
from user_directory.db.session import Database
from user_directory.main import app
from user_directory.models.user import Role, User
from user_directory.schemas.token import SessionClaims

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh schema per test, wired into the app's session dependency."""
    db = Database(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await db.create_all()

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with db.session() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield db
    app.dependency_overrides.pop(get_db, None)
    await db.close()


@pytest.fixture
async def async_client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Insert a user row directly, bypassing the service."""

    async def _make(
        email: str,
        *,
        name: str = "testuser",
        password: str = "testpassword",
        rol: Role = Role.USER,
        active: bool = True,
        uuid: str | None = None,
    ) -> User:
        user = User(
            uuid=uuid or str(uuid_lib.uuid4()),
            name=name,
            email=email,
            password=get_password_hash(password),
            rol=rol,
            active=active,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def fetch_user(database: Database):
    """Read a row through a new session so no cached state leaks in."""

    async def _fetch(uuid: str) -> User | None:
        async with database.session() as session:
            result = await session.execute(select(User).where(User.uuid == uuid))
            return result.scalar_one_or_none()

    return _fetch


def claims_for(
    uuid: str,
    email: str,
    rol: Role = Role.USER,
    name: str = "testuser",
    now: datetime | None = None,
) -> SessionClaims:
    return build_claims(uuid, name, email, rol, now=now or datetime.now(timezone.utc))


@pytest.fixture
def token_for():
    """Sign a session token for arbitrary claims (the user need not exist)."""

    def _token(
        uuid: str,
        email: str,
        rol: Role = Role.USER,
        now: datetime | None = None,
    ) -> str:
        return issue_token(claims_for(uuid, email, rol, now=now))

    return _token


@pytest.fixture
async def superadmin(make_user) -> User:
    return await make_user(
        "testuser@example.com", uuid="1234abc", rol=Role.SUPERADMIN
    )


@pytest.fixture
def superadmin_headers(superadmin: User, token_for) -> dict[str, str]:
    return {"Authorization": token_for(superadmin.uuid, superadmin.email, Role.SUPERADMIN)}


@pytest.fixture
def make_claims():
    return claims_for
