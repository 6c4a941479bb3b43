"""Seed routine for the administrative demo account.

Learn: Idempotent upsert. If a live user already has the seed email,
only its password hash is refreshed; otherwise the admin is inserted
with the fixed id "user-admin".
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pmhome.auth.password import hash_password_async
from pmhome.config import settings
from pmhome.db.models import Department, Role, User
from pmhome.db.user_repo import UserRepository, normalize_email

logger = structlog.get_logger()

SEED_ADMIN_ID = "user-admin"
SEED_ADMIN_NAME = "Admin Demo"


async def seed_admin(
    db: AsyncSession,
    email: str | None = None,
    password: str | None = None,
    bcrypt_rounds: int | None = None,
) -> tuple[User, bool]:
    """Create or refresh the admin user. Returns (user, created)."""
    email = normalize_email(email or settings.seed_admin_email)
    if not email:
        raise ValueError("Seed admin email must not be empty")
    password = password or settings.seed_admin_password
    password_hash = await hash_password_async(
        password, bcrypt_rounds or settings.bcrypt_rounds
    )

    repo = UserRepository(db)
    existing = await repo.get_by_email(email)
    if existing is not None:
        await repo.update_password(existing.id, password_hash)
        await db.commit()
        logger.info("seed.admin_updated", user_id=existing.id)
        return existing, False

    # A soft-deleted admin still owns the fixed id; fall back to a fresh one.
    taken = await repo.get_by_id(SEED_ADMIN_ID, include_deleted=True)
    user = await repo.create(
        user_id=None if taken else SEED_ADMIN_ID,
        name=SEED_ADMIN_NAME,
        email=email,
        role=Role.ADMIN,
        department=Department.DEV,
        password_hash=password_hash,
    )
    await db.commit()
    logger.info("seed.admin_created", user_id=user.id)
    return user, True
