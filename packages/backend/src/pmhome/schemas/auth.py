"""Pydantic schemas for the auth endpoints.

Learn: Inputs are deliberately loose (everything Optional) so that missing
fields reach the service and come back as the same 400 the service uses
for blank ones, instead of FastAPI's 422.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from pmhome.db.models import Department, Role


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileRead(BaseModel):
    userId: str
    email: str
    role: Role
    name: str
    department: Department


class LoginResponse(BaseModel):
    token: str
    user: ProfileRead


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    new_password: Optional[str] = Field(
        None, validation_alias=AliasChoices("newPassword", "new_password")
    )


class OkResponse(BaseModel):
    ok: bool
