"""
User service layer implementing business logic for user operations.
Separates business logic from API routes and database operations.
"""

import uuid
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.core.errors import DuplicateEmailError, NotFoundError, SelfDeletionError
from storefront.core.logging import get_logger
from storefront.core.security import (
    dummy_verify_password,
    get_password_hash,
    utcnow,
    verify_and_update_password,
)
from storefront.db.session import translate_persistence_errors
from storefront.models.user import RefreshToken, User, UserRole
from storefront.schemas.token import CurrentIdentity
from storefront.schemas.user import UserCreate, UserRegister, UserUpdate, normalize_email

logger = get_logger(__name__)


class UserService:
    """Service class for user-related operations."""

    @staticmethod
    @translate_persistence_errors
    def get_by_email(session: Session, email: str) -> Optional[User]:
        """
        Retrieve a user by email address (case-insensitive).

        Args:
            session: Database session
            email: Email address to search for

        Returns:
            User if found, None otherwise
        """
        statement = select(User).where(User.email == normalize_email(email))
        return session.exec(statement).first()

    @staticmethod
    @translate_persistence_errors
    def get_by_id(session: Session, user_id: uuid.UUID) -> Optional[User]:
        """
        Retrieve a user by ID.

        Args:
            session: Database session
            user_id: User ID to search for

        Returns:
            User if found, None otherwise
        """
        return session.get(User, user_id)

    @staticmethod
    @translate_persistence_errors
    def list_users(session: Session, skip: int = 0, limit: int = 100) -> list[User]:
        """List users ordered by creation time."""
        statement = select(User).order_by(User.created_at).offset(skip).limit(limit)
        return list(session.exec(statement).all())

    @staticmethod
    @translate_persistence_errors
    def create(
        session: Session,
        user_create: UserCreate | UserRegister,
        role: UserRole | None = None,
    ) -> User:
        """
        Create a new user with hashed password.

        Args:
            session: Database session
            user_create: User creation data
            role: Role override; defaults to the requested role or USER

        Returns:
            Created user instance

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        email = normalize_email(user_create.email)
        if UserService.get_by_email(session, email):
            raise DuplicateEmailError()

        if role is None:
            role = getattr(user_create, "role", UserRole.USER)

        db_user = User(
            username=user_create.username,
            email=email,
            hashed_password=get_password_hash(user_create.password),
            role=role,
        )
        session.add(db_user)
        try:
            session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            session.rollback()
            raise DuplicateEmailError() from e
        session.refresh(db_user)
        logger.info(f"User created: {db_user.email} (ID: {db_user.id}, role: {db_user.role.value})")
        return db_user

    @staticmethod
    @translate_persistence_errors
    def update(session: Session, user_id: uuid.UUID, user_update: UserUpdate) -> User:
        """
        Apply a partial update to a user.

        Absent fields are left untouched; a new password is re-hashed.

        Raises:
            NotFoundError: If the user does not exist
            DuplicateEmailError: If the new email belongs to another user
        """
        db_user = session.get(User, user_id)
        if db_user is None:
            raise NotFoundError("User not found")

        changes = user_update.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            existing = UserService.get_by_email(session, changes["email"])
            if existing is not None and existing.id != db_user.id:
                raise DuplicateEmailError()

        password = changes.pop("password", None)
        if password is not None:
            db_user.hashed_password = get_password_hash(password)

        for field, value in changes.items():
            setattr(db_user, field, value)
        db_user.updated_at = utcnow()

        session.add(db_user)
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise DuplicateEmailError() from e
        session.refresh(db_user)
        logger.info(f"User updated: {db_user.id} (fields: {sorted(user_update.model_fields_set)})")
        return db_user

    @staticmethod
    @translate_persistence_errors
    def delete(session: Session, user_id: uuid.UUID, acting_user_id: uuid.UUID) -> None:
        """
        Delete a user and all of their sessions.

        Raises:
            SelfDeletionError: If the caller targets its own account
            NotFoundError: If the user does not exist
        """
        if user_id == acting_user_id:
            raise SelfDeletionError()

        db_user = session.get(User, user_id)
        if db_user is None:
            raise NotFoundError("User not found")

        session.connection().execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
        session.delete(db_user)
        session.commit()
        logger.info(f"User deleted: {user_id} (by {acting_user_id})")

    @staticmethod
    @translate_persistence_errors
    def authenticate(session: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Legacy hashes are upgraded to the current scheme on success.

        Args:
            session: Database session
            email: User's email
            password: Plain text password

        Returns:
            User if authentication successful, None otherwise
        """
        user = UserService.get_by_email(session, email)
        if not user:
            # Spend the same hashing time as a real comparison
            dummy_verify_password()
            return None

        verified, new_hash = verify_and_update_password(password, user.hashed_password)
        if not verified:
            return None

        if new_hash:
            user.hashed_password = new_hash
            session.add(user)
            session.commit()
            session.refresh(user)
            logger.info(f"Upgraded password hash for user {user.id}")
        return user

    @staticmethod
    def is_admin(role_holder: User | CurrentIdentity) -> bool:
        """Check whether a user or an authenticated identity holds the admin role."""
        return role_holder.role == UserRole.ADMIN
