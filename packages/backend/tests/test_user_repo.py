"""UserRepository and seed routine tests — run directly on the session."""

import pytest

from pmhome.auth.password import verify_password
from pmhome.db.models import Active, Deleted, Department, Role
from pmhome.db.seed import SEED_ADMIN_ID, seed_admin
from pmhome.db.user_repo import UserFilters, UserRepository, to_public


async def _make(repo, name, email, **kwargs):
    return await repo.create(name=name, email=email, password_hash=None, **kwargs)


@pytest.mark.asyncio
async def test_create_normalizes_email(db_session):
    repo = UserRepository(db_session)
    user = await _make(repo, "Mixed Case", "  Mixed.Case@Demo.COM ")
    assert user.email == "mixed.case@demo.com"
    assert user.id
    assert await repo.get_by_email("MIXED.case@demo.com ") is user


@pytest.mark.asyncio
async def test_update_ignores_unknown_fields(db_session):
    repo = UserRepository(db_session)
    user = await _make(repo, "Ann", "ann@demo.com")
    updated = await repo.update(
        user.id,
        {
            "name": "Ann B",
            "role": Role.ADMIN,
            "email": "other@demo.com",
            "password_hash": "x",
            "deleted_at": "now",
        },
    )
    assert updated.name == "Ann B"
    assert updated.role is Role.EMPLOYEE
    assert updated.email == "ann@demo.com"
    assert updated.password_hash is None
    assert updated.deleted_at is None


@pytest.mark.asyncio
async def test_update_missing_user(db_session):
    repo = UserRepository(db_session)
    assert await repo.update("missing", {"name": "x"}) is None
    assert await repo.update_password("missing", "hash") is None
    assert await repo.soft_delete("missing") is False


@pytest.mark.asyncio
async def test_soft_delete_lifecycle(db_session):
    repo = UserRepository(db_session)
    user = await _make(repo, "Del", "del@demo.com")
    assert isinstance(user.lifecycle, Active)

    assert await repo.soft_delete(user.id) is True
    assert isinstance(user.lifecycle, Deleted)
    assert user.is_deleted

    assert await repo.get_by_id(user.id) is None
    assert await repo.get_by_email("del@demo.com") is None
    assert await repo.get_by_id(user.id, include_deleted=True) is user
    assert await repo.get_by_email("del@demo.com", include_deleted=True) is user
    assert await repo.list() == []
    assert await repo.update(user.id, {"name": "Back"}) is None
    assert await repo.soft_delete(user.id) is False


@pytest.mark.asyncio
async def test_list_filters(db_session):
    repo = UserRepository(db_session)
    a = await _make(repo, "Alice Admin", "alice@demo.com", role=Role.ADMIN)
    b = await _make(repo, "Bob Tester", "bob@demo.com", department=Department.TESTER)
    c = await _make(
        repo, "Cara Sales", "cara@sales.com", department=Department.PRESALES, is_active=False
    )

    assert {u.id for u in await repo.list()} == {a.id, b.id, c.id}
    assert await repo.list(UserFilters(role=Role.ADMIN)) == [a]
    assert await repo.list(UserFilters(department=Department.TESTER)) == [b]
    assert await repo.list(UserFilters(is_active=False)) == [c]
    assert {u.id for u in await repo.list(UserFilters(is_active=True))} == {a.id, b.id}
    assert await repo.list(UserFilters(search="SALES")) == [c]
    assert await repo.list(UserFilters(search="bob")) == [b]
    assert {u.id for u in await repo.list(UserFilters(search="   "))} == {a.id, b.id, c.id}
    assert await repo.list(UserFilters(role=Role.EMPLOYEE, department=Department.DEV)) == []


@pytest.mark.asyncio
async def test_to_public_hides_secrets(db_session):
    repo = UserRepository(db_session)
    user = await repo.create(name="P", email="p@demo.com", password_hash="secret-hash")
    public = to_public(user)
    assert "password_hash" not in public
    assert "deleted_at" not in public
    assert public["role"] == "EMPLOYEE"
    assert public["department"] == "DEV"


# ═══════════════════════════════════════════════════════════
# Seed routine
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_seed_admin_creates(db_session):
    user, created = await seed_admin(
        db_session, email="Admin@Demo.com", password="admin123", bcrypt_rounds=4
    )
    assert created is True
    assert user.id == SEED_ADMIN_ID
    assert user.email == "admin@demo.com"
    assert user.role is Role.ADMIN
    assert user.department is Department.DEV
    assert user.is_active
    assert verify_password("admin123", user.password_hash)


@pytest.mark.asyncio
async def test_seed_admin_is_idempotent(db_session):
    first, _ = await seed_admin(
        db_session, email="admin@demo.com", password="admin123", bcrypt_rounds=4
    )
    second, created = await seed_admin(
        db_session, email="admin@demo.com", password="changed-pass", bcrypt_rounds=4
    )
    assert created is False
    assert second.id == first.id
    assert verify_password("changed-pass", second.password_hash)
    assert len(await UserRepository(db_session).list()) == 1


@pytest.mark.asyncio
async def test_seed_admin_after_soft_delete(db_session):
    first, _ = await seed_admin(
        db_session, email="admin@demo.com", password="admin123", bcrypt_rounds=4
    )
    await UserRepository(db_session).soft_delete(first.id)
    await db_session.commit()

    user, created = await seed_admin(
        db_session, email="admin@demo.com", password="admin123", bcrypt_rounds=4
    )
    assert created is True
    assert user.id != SEED_ADMIN_ID
