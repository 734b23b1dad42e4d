from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.crm.schemas.auth import check_password_strength


class UserRead(BaseModel):
    id: UUID
    email: EmailStr
    full_name: str
    is_active: bool
    is_superuser: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CurrentUserRead(UserRead):
    """The caller, with their role in the tenant they are signed into."""

    tenant_id: UUID
    role: str


class MemberRead(UserRead):
    role: str


class MemberCreate(BaseModel):
    """Add a member. An unknown email creates the user; a password is then required."""

    email: EmailStr
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8, max_length=100)
    role: str = Field(default="user", min_length=1, max_length=50)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str | None) -> str | None:
        return None if v is None else check_password_strength(v)


class MemberRoleUpdate(BaseModel):
    role: str = Field(min_length=1, max_length=50)
