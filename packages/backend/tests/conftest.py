"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine with the schema created
   from the ORM metadata (StaticPool keeps the single connection alive).
2. get_db is overridden to hand every request the same test session, so a
   test can look at rows directly after calling the API.
3. get_token_codec is overridden with a codec holding a known secret, so
   tests can mint tokens (including expired ones) without logging in.
"""

import os

# Must be set before pmhome.config is imported anywhere.
os.environ.setdefault("PMHOME_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PMHOME_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PMHOME_ENVIRONMENT", "development")

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from pmhome.auth.jwt import TokenCodec, get_token_codec
from pmhome.auth.password import hash_password
from pmhome.db.engine import get_db
from pmhome.db.models import Base, Department, Role
from pmhome.db.seed import seed_admin
from pmhome.db.user_repo import UserRepository
from pmhome.main import app

TEST_SECRET = "test-secret-for-pmhome"
ADMIN_EMAIL = "admin@demo.com"
ADMIN_PASSWORD = "admin123"
EMPLOYEE_PASSWORD = "employee-pass-1"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a throwaway in-memory database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest.fixture()
def codec():
    return TokenCodec(TEST_SECRET, expires=timedelta(days=7))


@pytest_asyncio.fixture()
async def client(db_session, codec):
    """HTTP client running the real app, with the test DB and codec."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def admin(db_session):
    """The seeded administrator (admin@demo.com / admin123)."""
    user, _ = await seed_admin(
        db_session, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, bcrypt_rounds=4
    )
    return user


@pytest_asyncio.fixture()
async def employee(db_session):
    """A standard-role user with a known password."""
    repo = UserRepository(db_session)
    user = await repo.create(
        name="Erin Employee",
        email="erin@demo.com",
        role=Role.EMPLOYEE,
        department=Department.TESTER,
        password_hash=hash_password(EMPLOYEE_PASSWORD, rounds=4),
    )
    await db_session.commit()
    return user


@pytest.fixture()
def admin_headers(admin, codec):
    return {"Authorization": f"Bearer {codec.issue(admin.id, Role.ADMIN)}"}


@pytest.fixture()
def employee_headers(employee, codec):
    return {"Authorization": f"Bearer {codec.issue(employee.id, Role.EMPLOYEE)}"}
