"""
Token service: login, refresh token rotation and session termination.

Refresh tokens live in the ``refresh_tokens`` table, one row per session.
Rows are only ever inserted or deleted individually (or in bulk by a
predicate), never rewritten as a whole collection, so concurrent logins,
refreshes and logouts of the same user do not lose each other's updates.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from storefront.core.config import settings
from storefront.core.errors import InvalidCredentialsError, InvalidRefreshTokenError
from storefront.core.logging import get_logger
from storefront.core.security import (
    create_access_token,
    generate_refresh_token,
    hash_refresh_token,
    refresh_token_cutoff,
    refresh_token_expired,
    utcnow,
)
from storefront.db.session import translate_persistence_errors
from storefront.models.user import RefreshToken, User
from storefront.schemas.token import TokenPair
from storefront.services.user_service import UserService

logger = get_logger(__name__)


class TokenService:
    """Service class for token issuance and session lifecycle."""

    @staticmethod
    def _mint(session: Session, user: User, now: datetime) -> TokenPair:
        """Create a token pair and stage its refresh record; caller commits."""
        access_token = create_access_token(subject=user.id, role=user.role.value, now=now)
        refresh_token = generate_refresh_token()
        session.add(
            RefreshToken(
                user_id=user.id,
                token_hash=hash_refresh_token(refresh_token),
                created_at=now,
            )
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    @staticmethod
    @translate_persistence_errors
    def issue_tokens(session: Session, user: User, now: Optional[datetime] = None) -> TokenPair:
        """
        Issue an access token and a new refresh token session for a user.

        Args:
            session: Database session
            user: Authenticated user
            now: Issuance time (defaults to the current time)

        Returns:
            Token pair
        """
        pair = TokenService._mint(session, user, now or utcnow())
        session.commit()
        return pair

    @staticmethod
    @translate_persistence_errors
    def login(
        session: Session,
        email: str,
        password: str,
        now: Optional[datetime] = None,
    ) -> tuple[User, TokenPair]:
        """
        Authenticate by email and password and open a new session.

        Existing sessions of the user stay valid.

        Args:
            session: Database session
            email: Login email
            password: Plain text password
            now: Issuance time (defaults to the current time)

        Returns:
            The authenticated user and the issued token pair

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password alike
        """
        now = now or utcnow()
        user = UserService.authenticate(session, email=email, password=password)
        if user is None:
            logger.warning(f"Failed login attempt for email: {email}")
            raise InvalidCredentialsError()

        TokenService.purge_expired(session, now=now, user_id=user.id)
        pair = TokenService.issue_tokens(session, user, now=now)
        session.refresh(user)
        logger.info(f"User logged in: {user.email} (ID: {user.id})")
        return user, pair

    @staticmethod
    @translate_persistence_errors
    def refresh(session: Session, refresh_token: str, now: Optional[datetime] = None) -> TokenPair:
        """
        Exchange a refresh token for a new token pair.

        The presented token is consumed: its record is deleted and a new
        refresh token replaces it. Each refresh token works at most once.

        Args:
            session: Database session
            refresh_token: Opaque refresh token presented by the client
            now: Current time (defaults to the current time)

        Returns:
            New token pair

        Raises:
            InvalidRefreshTokenError: If the token is unknown, expired or already used
        """
        now = now or utcnow()
        statement = select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(refresh_token))
        record = session.exec(statement).first()
        if record is None:
            logger.warning("Refresh attempted with unknown or superseded token")
            raise InvalidRefreshTokenError()

        record_id, user_id = record.id, record.user_id

        if refresh_token_expired(record.created_at, now):
            session.connection().execute(delete(RefreshToken).where(RefreshToken.id == record_id))
            session.commit()
            logger.warning(f"Expired refresh token presented for user {user_id}")
            raise InvalidRefreshTokenError()

        consumed = session.connection().execute(delete(RefreshToken).where(RefreshToken.id == record_id))
        if consumed.rowcount != 1:
            # A concurrent refresh already rotated this token
            session.rollback()
            logger.warning(f"Refresh token for user {user_id} was already rotated")
            raise InvalidRefreshTokenError()

        user = session.get(User, user_id)
        if user is None:
            session.commit()
            raise InvalidRefreshTokenError()

        pair = TokenService._mint(session, user, now)
        session.commit()
        logger.info(f"Refresh token rotated for user {user_id}")
        return pair

    @staticmethod
    @translate_persistence_errors
    def revoke(session: Session, refresh_token: str) -> bool:
        """
        End the session identified by a refresh token.

        Returns:
            True if a session was removed
        """
        result = session.connection().execute(
            delete(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(refresh_token))
        )
        session.commit()
        return result.rowcount > 0

    @staticmethod
    @translate_persistence_errors
    def revoke_all(session: Session, refresh_token: str) -> int:
        """
        End every session of the user owning the given refresh token.

        Returns:
            Number of sessions removed
        """
        statement = select(RefreshToken).where(RefreshToken.token_hash == hash_refresh_token(refresh_token))
        record = session.exec(statement).first()
        if record is None:
            return 0

        user_id = record.user_id
        result = session.connection().execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        session.commit()
        logger.info(f"Revoked {result.rowcount} session(s) for user {user_id}")
        return result.rowcount

    @staticmethod
    @translate_persistence_errors
    def purge_expired(
        session: Session,
        now: Optional[datetime] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> int:
        """
        Delete refresh token records past their hard expiry.

        Args:
            session: Database session
            now: Reference time (defaults to the current time)
            user_id: Restrict the purge to one user

        Returns:
            Number of records removed
        """
        statement = delete(RefreshToken).where(RefreshToken.created_at <= refresh_token_cutoff(now))
        if user_id is not None:
            statement = statement.where(RefreshToken.user_id == user_id)
        result = session.connection().execute(statement)
        session.commit()
        if result.rowcount:
            logger.info(f"Purged {result.rowcount} expired refresh token(s)")
        return result.rowcount

