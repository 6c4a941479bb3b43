"""User repository — the only code that queries the users table.

Learn: Every lookup takes an explicit include_deleted flag (default False)
instead of relying on callers to remember the deleted_at filter. Writes go
through a field whitelist so a request body can never touch role, email,
or the password hash by accident.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pmhome.db.models import Department, Role, User, utcnow

UPDATABLE_FIELDS = ("name", "department", "contact_number", "is_active")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_public(user: User) -> dict[str, Any]:
    """Public profile of a user. Never includes password_hash or deleted_at."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "department": user.department.value,
        "is_active": user.is_active,
        "employee_id": user.employee_id,
        "contact_number": user.contact_number,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


@dataclass
class UserFilters:
    role: Optional[Role] = None
    department: Optional[Department] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None


class UserRepository:
    """Queries and writes for User rows, soft-delete aware."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select(self, include_deleted: bool):
        q = select(User)
        if not include_deleted:
            q = q.where(User.deleted_at.is_(None))
        return q

    async def get_by_id(
        self, user_id: str, include_deleted: bool = False
    ) -> User | None:
        result = await self.db.execute(
            self._select(include_deleted).where(User.id == user_id).limit(1)
        )
        return result.scalars().first()

    async def get_by_email(
        self, email: str, include_deleted: bool = False
    ) -> User | None:
        result = await self.db.execute(
            self._select(include_deleted)
            .where(User.email == normalize_email(email))
            .limit(1)
        )
        return result.scalars().first()

    async def list(self, filters: UserFilters | None = None) -> list[User]:
        """Live users matching the filters, newest first."""
        filters = filters or UserFilters()
        q = self._select(include_deleted=False)

        if filters.role is not None:
            q = q.where(User.role == filters.role)
        if filters.department is not None:
            q = q.where(User.department == filters.department)
        if filters.is_active is not None:
            q = q.where(User.is_active == filters.is_active)
        if filters.search and filters.search.strip():
            term = f"%{filters.search.strip().lower()}%"
            q = q.where(
                or_(
                    func.lower(User.name).like(term),
                    func.lower(User.email).like(term),
                )
            )

        result = await self.db.execute(
            q.order_by(User.created_at.desc(), User.id)
        )
        return list(result.scalars().all())

    async def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str | None,
        role: Role = Role.EMPLOYEE,
        department: Department = Department.DEV,
        is_active: bool = True,
        employee_id: str | None = None,
        contact_number: str | None = None,
        user_id: str | None = None,
    ) -> User:
        now = utcnow()
        user = User(
            name=name,
            email=normalize_email(email),
            role=role,
            department=department,
            is_active=is_active,
            employee_id=employee_id,
            contact_number=contact_number,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        if user_id:
            user.id = user_id
        self.db.add(user)
        await self.db.flush()
        return user

    async def update(self, user_id: str, patch: dict[str, Any]) -> User | None:
        """Apply whitelisted fields. Unknown keys are ignored.

        Returns None when no live user has this id.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        changes = {k: v for k, v in patch.items() if k in UPDATABLE_FIELDS}
        if not changes:
            return user

        for key, value in changes.items():
            if key == "is_active":
                value = bool(value)
            setattr(user, key, value)
        user.updated_at = utcnow()
        await self.db.flush()
        return user

    async def update_password(self, user_id: str, password_hash: str) -> User | None:
        user = await self.get_by_id(user_id)
        if user is None:
            return None
        user.password_hash = password_hash
        user.updated_at = utcnow()
        await self.db.flush()
        return user

    async def soft_delete(self, user_id: str) -> bool:
        """Mark a live user deleted. The row stays in the table."""
        user = await self.get_by_id(user_id)
        if user is None:
            return False
        now = utcnow()
        user.deleted_at = now
        user.updated_at = now
        await self.db.flush()
        return True
