"""
User schemas for API request/response validation.
Separates internal models from API contracts using Pydantic.
"""

import uuid
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, EmailStr, StringConstraints, field_validator

from storefront.models.user import UserRole
from storefront.schemas.common import CamelModel, Utf8Str, require_utf8

Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
    AfterValidator(require_utf8),
]
Password = Annotated[str, StringConstraints(min_length=1, max_length=128), AfterValidator(require_utf8)]


def normalize_email(value: str) -> str:
    """Emails are compared and stored trimmed and lowercase."""
    return value.strip().lower()


class UserBase(CamelModel):
    """Base user schema with common fields."""

    username: Username
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return require_utf8(normalize_email(v)) if isinstance(v, str) else v


class UserRegister(UserBase):
    """Schema for self-service registration. Always creates a regular user."""

    password: Password


class UserCreate(UserBase):
    """Schema for user creation by an administrator."""

    password: Password
    role: UserRole = UserRole.USER


class UserUpdate(CamelModel):
    """
    Schema for partial user updates.
    Only fields present in the request are applied.
    """

    username: Optional[Username] = None
    email: Optional[EmailStr] = None
    password: Optional[Password] = None
    role: Optional[UserRole] = None

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return require_utf8(normalize_email(v)) if isinstance(v, str) else v


class UserLogin(CamelModel):
    """Schema for user login."""

    email: EmailStr
    password: Utf8Str

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v: Any) -> Any:
        return require_utf8(normalize_email(v)) if isinstance(v, str) else v


class UserResponse(UserBase):
    """
    Schema for user data in API responses.
    Excludes sensitive information like hashed_password and refresh tokens.
    """

    id: uuid.UUID
    role: UserRole
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
