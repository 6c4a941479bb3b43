"""Pydantic schemas for user administration.

Learn: JSON is camelCase on the wire (isActive, employeeId), snake_case in
Python. Read schemas serialize with camelCase aliases; write schemas accept
both spellings.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import AliasChoices, AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pmhome.db.models import Department, Role


class UserRead(BaseModel):
    """Public user record. No password hash, no deletion metadata."""

    id: str
    name: str
    email: str
    role: Role
    department: Department
    is_active: bool
    employee_id: Optional[str] = None
    contact_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


class UserCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    employee_id: Optional[Union[str, int]] = Field(
        None, validation_alias=AliasChoices("employeeId", "employee_id")
    )
    contact_number: Optional[Union[str, int]] = Field(
        None, validation_alias=AliasChoices("contactNumber", "contact_number")
    )
    role: Optional[str] = None


class UserCreated(BaseModel):
    """Response for user creation. The password is only shown ONCE."""

    user: UserRead
    generatedPassword: str


class UserUpdate(BaseModel):
    """Only fields present in the body are applied (see model_fields_set)."""

    name: Optional[str] = None
    department: Optional[str] = None
    contact_number: Optional[Union[str, int]] = Field(
        None, validation_alias=AliasChoices("contactNumber", "contact_number")
    )
    is_active: Optional[bool] = Field(
        None, validation_alias=AliasChoices("is_active", "isActive")
    )


class GeneratedPassword(BaseModel):
    generatedPassword: str
