"""
Authentication routes: registration, login, token refresh and logout.
Tokens are returned in the body and also set as HttpOnly cookies.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Cookie, Depends, Response, status
from sqlmodel import Session

from storefront.api.deps import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, CurrentUser
from storefront.core.config import settings
from storefront.core.errors import InvalidRefreshTokenError, NotFoundError
from storefront.core.logging import get_logger
from storefront.db.session import get_session
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.schemas.token import LoginResponse, LogoutAllResponse, RefreshRequest, TokenPair
from storefront.schemas.user import UserLogin, UserRegister, UserResponse
from storefront.services.token_service import TokenService
from storefront.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], responses={401: {"model": ErrorResponse}})


def _set_token_cookies(response: Response, pair: TokenPair) -> None:
    """Set both tokens as HttpOnly cookies with lifetimes matching the tokens."""
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=pair.access_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=pair.refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        path=f"{settings.API_PREFIX}/auth",
    )


def _clear_token_cookies(response: Response) -> None:
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE)
    response.delete_cookie(key=REFRESH_TOKEN_COOKIE, path=f"{settings.API_PREFIX}/auth")


def _presented_refresh_token(body: Optional[RefreshRequest], cookie_value: Optional[str]) -> Optional[str]:
    """The refresh token from the body, falling back to the cookie."""
    if body is not None and body.refresh_token:
        return body.refresh_token
    return cookie_value or None


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_in: UserRegister,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Register a new user.

    Self-registered accounts always get the ``user`` role.

    Raises:
        DuplicateEmailError: If email already registered
    """
    user = UserService.create(session, user_create=user_in)
    logger.info(f"New user registered: {user.email} (ID: {user.id})")
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: UserLogin,
    response: Response,
    session: Annotated[Session, Depends(get_session)],
) -> LoginResponse:
    """
    Log in with email and password.

    Returns an access token and a refresh token; every login opens a new
    session alongside any existing ones.

    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user, pair = TokenService.login(session, email=credentials.email, password=credentials.password)
    _set_token_cookies(response, pair)
    return LoginResponse(
        **pair.model_dump(),
        user=UserResponse.model_validate(user),
    )


@router.post("/refresh", response_model=TokenPair)
def refresh(
    response: Response,
    session: Annotated[Session, Depends(get_session)],
    body: Optional[RefreshRequest] = None,
    refresh_token_cookie: Annotated[Optional[str], Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
) -> TokenPair:
    """
    Exchange a refresh token for a new token pair.

    The refresh token may be sent in the body (``refreshToken``) or via the
    HttpOnly cookie. The presented token is invalidated and replaced.

    Raises:
        InvalidRefreshTokenError: If the token is missing, unknown, expired or already used
    """
    token = _presented_refresh_token(body, refresh_token_cookie)
    if not token:
        raise InvalidRefreshTokenError("Refresh token missing")

    pair = TokenService.refresh(session, token)
    _set_token_cookies(response, pair)
    return pair


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    session: Annotated[Session, Depends(get_session)],
    body: Optional[RefreshRequest] = None,
    refresh_token_cookie: Annotated[Optional[str], Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
) -> MessageResponse:
    """End the current session and clear the token cookies."""
    token = _presented_refresh_token(body, refresh_token_cookie)
    if token:
        TokenService.revoke(session, token)
    _clear_token_cookies(response)
    return MessageResponse(message="Logged out")


@router.post("/logout-all", response_model=LogoutAllResponse)
def logout_all(
    response: Response,
    session: Annotated[Session, Depends(get_session)],
    body: Optional[RefreshRequest] = None,
    refresh_token_cookie: Annotated[Optional[str], Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
) -> LogoutAllResponse:
    """End every session of the user owning the presented refresh token."""
    token = _presented_refresh_token(body, refresh_token_cookie)
    revoked = TokenService.revoke_all(session, token) if token else 0
    _clear_token_cookies(response)
    return LogoutAllResponse(message="Logged out from all devices", revoked_sessions=revoked)


@router.get("/profile", response_model=UserResponse)
def get_profile(
    identity: CurrentUser,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Get the current user's profile.
    This is a protected route that requires authentication.
    """
    user = UserService.get_by_id(session, identity.id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user)
