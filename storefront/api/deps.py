"""
API dependencies for FastAPI dependency injection.
Provides reusable dependencies for authentication and authorization.

Access tokens are verified statelessly: the identity and role embedded at
issuance are trusted until the token expires, without a database read.
"""

from typing import Annotated, Callable, Optional

from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from pydantic import ValidationError

from storefront.core.errors import ForbiddenError, UnauthenticatedError, UnauthenticatedReason
from storefront.core.logging import get_logger
from storefront.core.security import decode_access_token
from storefront.models.user import UserRole
from storefront.schemas.token import CurrentIdentity, TokenPayload

logger = get_logger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"

bearer_scheme = HTTPBearer(auto_error=False)


def get_access_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    access_token_cookie: Annotated[Optional[str], Cookie(alias=ACCESS_TOKEN_COOKIE)] = None,
) -> Optional[str]:
    """
    Extract the raw access token from the request.

    The Authorization header wins over the cookie.
    """
    if credentials and credentials.credentials:
        return credentials.credentials
    return access_token_cookie or None


def get_current_identity(
    token: Annotated[Optional[str], Depends(get_access_token)],
) -> CurrentIdentity:
    """
    Dependency to resolve the caller's identity from its access token.

    Args:
        token: Raw access token, if any

    Returns:
        Identity (user id and role) snapshotted in the token

    Raises:
        UnauthenticatedError: If the token is missing, malformed or expired
    """
    if not token:
        raise UnauthenticatedError(UnauthenticatedReason.NO_TOKEN)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise UnauthenticatedError(UnauthenticatedReason.EXPIRED)
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise UnauthenticatedError(UnauthenticatedReason.MALFORMED)

    try:
        claims = TokenPayload.model_validate(payload)
    except ValidationError:
        logger.warning("Access token has invalid claims")
        raise UnauthenticatedError(UnauthenticatedReason.MALFORMED)

    return CurrentIdentity(id=claims.sub, role=claims.role)


def require_role(role: UserRole) -> Callable[[CurrentIdentity], CurrentIdentity]:
    """
    Build a dependency that admits only identities holding ``role``.

    Authentication happens in ``get_current_identity``; this only authorizes.

    Args:
        role: Required role

    Returns:
        FastAPI dependency returning the authorized identity
    """

    def dependency(
        identity: Annotated[CurrentIdentity, Depends(get_current_identity)],
    ) -> CurrentIdentity:
        if identity.role != role:
            logger.warning(f"User {identity.id} with role {identity.role.value} denied {role.value} access")
            raise ForbiddenError()
        return identity

    dependency.__name__ = f"require_{role.value}"
    return dependency


get_current_admin = require_role(UserRole.ADMIN)

CurrentUser = Annotated[CurrentIdentity, Depends(get_current_identity)]
CurrentAdmin = Annotated[CurrentIdentity, Depends(get_current_admin)]
