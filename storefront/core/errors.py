"""
Application error taxonomy.

Every failure the API reports maps to one ErrorCode. Services and
dependencies raise the matching StorefrontError subclass; the exception
handlers in ``storefront.api.exception_handlers`` render them as
``{"detail": ..., "code": ...}`` responses.
"""

from enum import Enum
from typing import Any, Optional

from fastapi import status


class ErrorCode(str, Enum):
    """Stable, machine-readable error kinds exposed to API clients."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_OR_EXPIRED_REFRESH_TOKEN = "INVALID_OR_EXPIRED_REFRESH_TOKEN"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    NOT_FOUND = "NOT_FOUND"
    SELF_DELETION = "SELF_DELETION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSIENT = "TRANSIENT"
    INTERNAL = "INTERNAL"


class UnauthenticatedReason(str, Enum):
    """Why an access token was rejected."""

    NO_TOKEN = "no_token"
    MALFORMED = "malformed"
    EXPIRED = "expired"


class StorefrontError(Exception):
    """Base class for all errors surfaced to API clients."""

    code: ErrorCode = ErrorCode.INTERNAL
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.message = message or self.message
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)


class UnauthenticatedError(StorefrontError):
    """Missing, malformed or expired access token."""

    code = ErrorCode.UNAUTHENTICATED
    status_code = status.HTTP_401_UNAUTHORIZED

    _messages = {
        UnauthenticatedReason.NO_TOKEN: "Authentication required",
        UnauthenticatedReason.MALFORMED: "Could not validate credentials",
        UnauthenticatedReason.EXPIRED: "Access token expired, use the refresh token",
    }

    def __init__(self, reason: UnauthenticatedReason) -> None:
        self.reason = reason
        super().__init__(
            self._messages[reason],
            details={"reason": reason.value},
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(StorefrontError):
    code = ErrorCode.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN
    message = "Not enough permissions"


class InvalidCredentialsError(StorefrontError):
    # Same message for unknown email and wrong password
    code = ErrorCode.INVALID_CREDENTIALS
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Incorrect email or password"


class InvalidRefreshTokenError(StorefrontError):
    code = ErrorCode.INVALID_OR_EXPIRED_REFRESH_TOKEN
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired refresh token"


class DuplicateEmailError(StorefrontError):
    code = ErrorCode.DUPLICATE_EMAIL
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Email already registered"


class NotFoundError(StorefrontError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class SelfDeletionError(StorefrontError):
    code = ErrorCode.SELF_DELETION
    status_code = status.HTTP_400_BAD_REQUEST
    message = "You cannot delete your own account"


class TransientError(StorefrontError):
    """Backing service timed out or is unavailable; safe to retry."""

    code = ErrorCode.TRANSIENT
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Service temporarily unavailable, please retry"
