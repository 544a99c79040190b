"""
Tests for the user service layer.
"""

import uuid

import pytest
from passlib.hash import bcrypt as legacy_bcrypt
from sqlmodel import Session, select

from storefront.core.errors import DuplicateEmailError, NotFoundError, SelfDeletionError
from storefront.core.security import verify_password
from storefront.models.user import RefreshToken, User, UserRole
from storefront.schemas.token import CurrentIdentity
from storefront.schemas.user import UserCreate, UserUpdate
from storefront.services.token_service import TokenService
from storefront.services.user_service import UserService


def test_create_user(session: Session) -> None:
    """Test user creation."""
    user_create = UserCreate(
        username="Service Test User",
        email="service@example.com",
        password="password123",
    )
    user = UserService.create(session, user_create)

    assert isinstance(user.id, uuid.UUID)
    assert user.email == "service@example.com"
    assert user.username == "Service Test User"
    assert user.role == UserRole.USER
    assert user.hashed_password != "password123"
    assert verify_password("password123", user.hashed_password)


def test_create_user_normalizes_email(session: Session) -> None:
    user = UserService.create(
        session,
        UserCreate(username="Mixed", email="  Mixed.Case@Example.COM ", password="pw"),
    )
    assert user.email == "mixed.case@example.com"


def test_create_user_duplicate_email_case_insensitive(session: Session, test_user: User) -> None:
    with pytest.raises(DuplicateEmailError):
        UserService.create(
            session,
            UserCreate(username="Copy", email="TEST@example.com", password="other"),
        )


def test_get_user_by_email(session: Session, test_user: User) -> None:
    """Test retrieving user by email."""
    user = UserService.get_by_email(session, "Test@Example.com")
    assert user is not None
    assert user.id == test_user.id


def test_get_user_by_id(session: Session, test_user: User) -> None:
    """Test retrieving user by ID."""
    user = UserService.get_by_id(session, test_user.id)
    assert user is not None
    assert user.email == test_user.email
    assert UserService.get_by_id(session, uuid.uuid4()) is None


def test_list_users(session: Session, test_user: User, test_admin: User) -> None:
    users = UserService.list_users(session)
    assert {u.email for u in users} == {"test@example.com", "admin@example.com"}
    assert len(UserService.list_users(session, skip=1, limit=1)) == 1


def test_update_user_partial(session: Session, test_user: User) -> None:
    original_hash = test_user.hashed_password
    original_email = test_user.email

    user = UserService.update(session, test_user.id, UserUpdate(username="Renamed"))

    assert user.username == "Renamed"
    assert user.email == original_email
    assert user.role == UserRole.USER
    assert user.hashed_password == original_hash


def test_update_user_password_is_rehashed(session: Session, test_user: User) -> None:
    UserService.update(session, test_user.id, UserUpdate(password="brand-new"))

    assert UserService.authenticate(session, "test@example.com", "testpassword123") is None
    user = UserService.authenticate(session, "test@example.com", "brand-new")
    assert user is not None
    assert user.hashed_password != "brand-new"


def test_update_user_email_collision(session: Session, test_user: User, test_admin: User) -> None:
    with pytest.raises(DuplicateEmailError):
        UserService.update(session, test_user.id, UserUpdate(email="ADMIN@example.com"))


def test_update_user_keeps_own_email(session: Session, test_user: User) -> None:
    user = UserService.update(session, test_user.id, UserUpdate(email="TEST@example.com", username="Same"))
    assert user.email == "test@example.com"


def test_update_missing_user(session: Session) -> None:
    with pytest.raises(NotFoundError):
        UserService.update(session, uuid.uuid4(), UserUpdate(username="Ghost"))


def test_delete_user_removes_sessions(session: Session, test_user: User, test_admin: User) -> None:
    user_id = test_user.id
    TokenService.issue_tokens(session, test_user)

    UserService.delete(session, user_id, acting_user_id=test_admin.id)

    assert UserService.get_by_id(session, user_id) is None
    remaining = session.exec(select(RefreshToken).where(RefreshToken.user_id == user_id)).all()
    assert remaining == []


def test_delete_self_is_refused(session: Session, test_admin: User) -> None:
    with pytest.raises(SelfDeletionError):
        UserService.delete(session, test_admin.id, acting_user_id=test_admin.id)
    assert UserService.get_by_id(session, test_admin.id) is not None


def test_delete_missing_user(session: Session, test_admin: User) -> None:
    with pytest.raises(NotFoundError):
        UserService.delete(session, uuid.uuid4(), acting_user_id=test_admin.id)


def test_authenticate_user_success(session: Session, test_user: User) -> None:
    """Test successful user authentication."""
    user = UserService.authenticate(session, "test@example.com", "testpassword123")
    assert user is not None
    assert user.id == test_user.id


def test_authenticate_user_wrong_password(session: Session, test_user: User) -> None:
    """Test authentication with wrong password."""
    assert UserService.authenticate(session, "test@example.com", "wrongpassword") is None


def test_authenticate_nonexistent_user(session: Session) -> None:
    """Test authentication with non-existent user."""
    assert UserService.authenticate(session, "nobody@example.com", "password") is None


def test_authenticate_upgrades_legacy_bcrypt_hash(session: Session) -> None:
    legacy_hash = legacy_bcrypt.using(rounds=4).hash("legacy-pw")
    user = User(username="Legacy", email="legacy@example.com", hashed_password=legacy_hash)
    session.add(user)
    session.commit()

    authenticated = UserService.authenticate(session, "legacy@example.com", "legacy-pw")

    assert authenticated is not None
    assert authenticated.hashed_password.startswith("$pbkdf2-sha256$")
    assert verify_password("legacy-pw", authenticated.hashed_password)


def test_is_admin(test_user: User, test_admin: User) -> None:
    assert UserService.is_admin(test_admin)
    assert not UserService.is_admin(test_user)
    assert UserService.is_admin(CurrentIdentity(id=test_user.id, role=UserRole.ADMIN))
