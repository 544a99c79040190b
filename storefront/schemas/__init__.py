"""Pydantic schemas for request/response validation."""

from storefront.schemas.common import CamelModel, ErrorResponse, MessageResponse
from storefront.schemas.token import (
    CurrentIdentity,
    LoginResponse,
    LogoutAllResponse,
    RefreshRequest,
    TokenPair,
    TokenPayload,
)
from storefront.schemas.user import UserCreate, UserLogin, UserRegister, UserResponse, UserUpdate

__all__ = [
    "CamelModel",
    "CurrentIdentity",
    "ErrorResponse",
    "LoginResponse",
    "LogoutAllResponse",
    "MessageResponse",
    "RefreshRequest",
    "TokenPair",
    "TokenPayload",
    "UserCreate",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "UserUpdate",
]
