"""
Token schemas for JWT authentication and refresh token rotation.
"""

import uuid
from typing import Literal, Optional

from pydantic import BaseModel

from storefront.models.user import UserRole
from storefront.schemas.common import CamelModel, Utf8Str
from storefront.schemas.user import UserResponse


class TokenPair(CamelModel):
    """Schema for an access/refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(TokenPair):
    """Token pair plus the authenticated user's profile."""

    user: UserResponse


class RefreshRequest(CamelModel):
    """
    Request schema for token refresh and logout.

    The refresh token may be omitted here and sent via the HttpOnly cookie.
    """

    refresh_token: Optional[Utf8Str] = None


class LogoutAllResponse(CamelModel):
    """Result of ending every session of a user."""

    message: str
    revoked_sessions: int


class TokenPayload(BaseModel):
    """Schema for decoded JWT access token claims."""

    sub: uuid.UUID
    role: UserRole
    type: Literal["access"]
    iat: int
    exp: int


class CurrentIdentity(BaseModel):
    """Identity resolved from a verified access token and attached to the request."""

    id: uuid.UUID
    role: UserRole
