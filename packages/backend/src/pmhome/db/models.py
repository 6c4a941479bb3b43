"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Only the tables authentication touches live here: users and the
single-use password reset tokens.

Key concepts:
- String ids (uuid4 text), opaque to clients, portable across backends
- Soft delete: deleted_at is NULL for live users; rows are never removed
- Roles and departments are closed enums, stored by name
"""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Role(str, enum.Enum):
    """Closed set of roles. ADMIN is administrative, EMPLOYEE is standard."""

    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"

    @property
    def home(self) -> str:
        """Landing area of the dashboard for this role."""
        if self is Role.ADMIN:
            return "/admin"
        return "/employee"


class Department(str, enum.Enum):
    DEV = "DEV"
    PRESALES = "PRESALES"
    TESTER = "TESTER"


# ─── Lifecycle ──────────────────────────────────────────


@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    at: datetime


Lifecycle = Union[Active, Deleted]


class User(Base):
    """A person who can log in. Created by an admin or the seed routine.

    Learn: email is stored lower-cased and is unique among live users only;
    that check is done by the service layer (see DESIGN.md, open questions),
    so the column itself is indexed but not UNIQUE.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_deleted_at", "deleted_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, native_enum=False, length=20),
        nullable=False,
        default=Role.EMPLOYEE,
    )
    department: Mapped[Department] = mapped_column(
        SAEnum(Department, native_enum=False, length=20),
        nullable=False,
        default=Department.DEV,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    employee_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    contact_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def lifecycle(self) -> Lifecycle:
        if self.deleted_at is None:
            return Active()
        return Deleted(at=as_utc(self.deleted_at))

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.lifecycle, Deleted)


class PasswordResetToken(Base):
    """Single-use, time-bounded token for the forgot-password flow.

    Learn: Only the sha256 of the token is stored, the same idea as storing
    password hashes. The raw token leaves the server exactly once, in the
    reset link.
    """

    __tablename__ = "password_reset_tokens"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
