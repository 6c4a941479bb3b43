"""User administration API — admin only.

Learn: The whole router is guarded in api/__init__.py with the admin
RoleGate, which itself depends on the bearer-token check. Handlers only
deal with parsing and delegate to UserService.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from pmhome.db.engine import get_db
from pmhome.db.models import Department, Role
from pmhome.db.user_repo import UserFilters
from pmhome.schemas.user import (
    GeneratedPassword,
    UserCreate,
    UserCreated,
    UserRead,
    UserUpdate,
)
from pmhome.services.user_service import UserService

router = APIRouter(prefix="/users")

_TRUTHY = {"true", "1", "yes"}
_FALSY = {"false", "0", "no"}


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _parse_active(value: Optional[str]) -> Optional[bool]:
    if value is None or value.strip() == "":
        return None
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return None


@router.get("", response_model=list[UserRead])
async def list_users(
    role: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None),
    svc: UserService = Depends(_svc),
):
    """List live users. Role and department match case-insensitively;
    an unknown value matches nobody."""
    filters = UserFilters(is_active=_parse_active(is_active), search=search)
    if role and role.strip():
        name = role.strip().upper()
        if name not in Role.__members__:
            return []
        filters.role = Role[name]
    if department and department.strip():
        name = department.strip().upper()
        if name not in Department.__members__:
            return []
        filters.department = Department[name]
    return await svc.list_users(filters)


@router.post("", response_model=UserCreated, status_code=201)
async def create_user(body: UserCreate, svc: UserService = Depends(_svc)):
    """Create a user. The generated password is only returned ONCE."""
    user, generated_password = await svc.create_user(
        name=body.name,
        email=body.email,
        department=body.department,
        employee_id=body.employee_id,
        contact_number=body.contact_number,
        role=body.role,
    )
    return {"user": UserRead.model_validate(user), "generatedPassword": generated_password}


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str, body: UserUpdate, svc: UserService = Depends(_svc)
):
    changes = {name: getattr(body, name) for name in body.model_fields_set}
    return await svc.update_user(user_id, **changes)


@router.patch("/{user_id}/reset-password", response_model=GeneratedPassword)
async def reset_user_password(user_id: str, svc: UserService = Depends(_svc)):
    generated_password = await svc.reset_password(user_id)
    return {"generatedPassword": generated_password}


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: str, svc: UserService = Depends(_svc)):
    """Soft delete."""
    await svc.delete_user(user_id)
    return Response(status_code=204)
