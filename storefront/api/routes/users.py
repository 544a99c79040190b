"""
User management routes.
Every route requires an authenticated admin.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from storefront.api.deps import CurrentAdmin
from storefront.core.errors import NotFoundError
from storefront.core.logging import get_logger
from storefront.db.session import get_session
from storefront.schemas.common import ErrorResponse, MessageResponse
from storefront.schemas.user import UserCreate, UserResponse, UserUpdate
from storefront.services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.get("", response_model=list[UserResponse])
def list_users(
    admin: CurrentAdmin,
    session: Annotated[Session, Depends(get_session)],
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[UserResponse]:
    """List users."""
    users = UserService.list_users(session, skip=skip, limit=limit)
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: uuid.UUID,
    admin: CurrentAdmin,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Get a single user.

    Raises:
        NotFoundError: If the user does not exist
    """
    user = UserService.get_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    admin: CurrentAdmin,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Create a user with any role.

    Raises:
        DuplicateEmailError: If email already registered
    """
    user = UserService.create(session, user_create=user_in)
    logger.info(f"Admin {admin.id} created user {user.id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: uuid.UUID,
    user_in: UserUpdate,
    admin: CurrentAdmin,
    session: Annotated[Session, Depends(get_session)],
) -> UserResponse:
    """
    Partially update a user. Omitted fields are left unchanged.

    Role changes reach the user's access tokens only when new ones are issued.
    """
    user = UserService.update(session, user_id, user_in)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: uuid.UUID,
    admin: CurrentAdmin,
    session: Annotated[Session, Depends(get_session)],
) -> MessageResponse:
    """
    Delete a user and end all of their sessions.

    Raises:
        SelfDeletionError: If an admin targets their own account
        NotFoundError: If the user does not exist
    """
    UserService.delete(session, user_id, acting_user_id=admin.id)
    return MessageResponse(message="User deleted")
