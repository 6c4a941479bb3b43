"""User service — administrative user management.

Learn: Creating a user and resetting a password both generate a random
password, store only its bcrypt hash, and hand the plaintext back to the
caller exactly once. It is never logged.

Role and email are fixed once the user exists; update() only touches
name, department, contact number, and the active flag.
"""

import re
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from pmhome.auth.password import generate_password, hash_password_async
from pmhome.config import settings
from pmhome.db.models import Department, Role, User
from pmhome.db.user_repo import UserFilters, UserRepository, normalize_email
from pmhome.errors import ConflictError, NotFoundError, ValidationError

logger = structlog.get_logger()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USER_NOT_FOUND = "User not found"

_UNSET: Any = object()


def _enum_or_none(enum_cls, value):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _clean_optional(value: Any) -> str | None:
    """Trim optional text fields; blank becomes None."""
    if value is None:
        return None
    return str(value).strip() or None


class UserService:
    """Business logic for user administration."""

    def __init__(
        self,
        db: AsyncSession,
        bcrypt_rounds: int | None = None,
        password_length: int | None = None,
    ):
        self.db = db
        self.users = UserRepository(db)
        self.bcrypt_rounds = bcrypt_rounds or settings.bcrypt_rounds
        self.password_length = password_length or settings.generated_password_length

    async def list_users(self, filters: UserFilters | None = None) -> list[User]:
        return await self.users.list(filters)

    async def create_user(
        self,
        name: Any,
        email: Any,
        department: Any = None,
        employee_id: Any = None,
        contact_number: Any = None,
        role: Any = None,
    ) -> tuple[User, str]:
        """Create a user with a generated password.

        Returns (user, plaintext password). Unknown department falls back to
        DEV and unknown role to EMPLOYEE.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("email is required")
        email = normalize_email(email)
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email format")

        if await self.users.get_by_email(email) is not None:
            raise ConflictError("Email already in use")

        dept = _enum_or_none(Department, department) or Department.DEV
        user_role = _enum_or_none(Role, role) or Role.EMPLOYEE

        generated_password = generate_password(self.password_length)
        password_hash = await hash_password_async(generated_password, self.bcrypt_rounds)

        user = await self.users.create(
            name=name.strip(),
            email=email,
            role=user_role,
            department=dept,
            employee_id=_clean_optional(employee_id),
            contact_number=_clean_optional(contact_number),
            password_hash=password_hash,
        )
        await self.db.commit()

        logger.info("users.created", user_id=user.id, role=user_role.value)
        return user, generated_password

    async def update_user(
        self,
        user_id: str,
        name: Any = _UNSET,
        department: Any = _UNSET,
        contact_number: Any = _UNSET,
        is_active: Any = _UNSET,
    ) -> User:
        """Update the editable fields. Omitted arguments are left alone."""
        if await self.users.get_by_id(user_id) is None:
            raise NotFoundError(USER_NOT_FOUND)

        patch: dict[str, Any] = {}
        if name is not _UNSET:
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("name must be a non-empty string")
            patch["name"] = name.strip()
        if department is not _UNSET:
            dept = _enum_or_none(Department, department)
            if dept is None:
                raise ValidationError("Invalid department")
            patch["department"] = dept
        if contact_number is not _UNSET:
            patch["contact_number"] = _clean_optional(contact_number)
        if is_active is not _UNSET:
            patch["is_active"] = bool(is_active)

        user = await self.users.update(user_id, patch)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        await self.db.commit()

        logger.info("users.updated", user_id=user_id, fields=sorted(patch))
        return user

    async def reset_password(self, user_id: str) -> str:
        """Replace the password with a fresh generated one and return it."""
        if await self.users.get_by_id(user_id) is None:
            raise NotFoundError(USER_NOT_FOUND)

        generated_password = generate_password(self.password_length)
        password_hash = await hash_password_async(generated_password, self.bcrypt_rounds)
        if await self.users.update_password(user_id, password_hash) is None:
            raise NotFoundError(USER_NOT_FOUND)
        await self.db.commit()

        logger.info("users.password_reset", user_id=user_id)
        return generated_password

    async def delete_user(self, user_id: str) -> None:
        """Soft delete. The row stays; lookups stop seeing it."""
        if not await self.users.soft_delete(user_id):
            raise NotFoundError(USER_NOT_FOUND)
        await self.db.commit()
        logger.info("users.deleted", user_id=user_id)
