"""Users router.

Endpoints for creating, reading, updating and deactivating parent and
child users. Business-rule failures raised by the domain service are
turned into error envelopes by the application's exception handlers.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from user_service.config import settings
from user_service.core.dependencies import get_request_id
from user_service.core.exceptions import UserNotFoundError
from user_service.core.rate_limit import limiter
from user_service.database import get_db
from user_service.schemas.common import ApiResponse
from user_service.schemas.user import UserCreate, UserProfileUpdate, UserResponse, UserUpdate
from user_service.services import user_domain_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """Get an active user with profile."""
    user = await user_domain_service.get_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    return ApiResponse[UserResponse](
        data=user, success=True, message="User retrieved", request_id=request_id,
    )


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.WRITE_RATE_LIMIT)
async def create_user(
    request: Request,
    response: Response,
    body: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """Create a parent or child user."""
    user = await user_domain_service.create_user(db, body)
    response.headers["Location"] = str(request.url_for("get_user", user_id=str(user.id)))
    return ApiResponse[UserResponse](
        data=user, success=True, message="User created", request_id=request_id,
    )


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
@limiter.limit(settings.WRITE_RATE_LIMIT)
async def update_user(
    request: Request,
    user_id: uuid.UUID,
    body: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """Update a user's name, email and birth date."""
    user = await user_domain_service.update_user(db, user_id, body)
    return ApiResponse[UserResponse](
        data=user, success=True, message="User updated", request_id=request_id,
    )


@router.put("/{user_id}/profile", response_model=ApiResponse[UserResponse])
@limiter.limit(settings.WRITE_RATE_LIMIT)
async def update_user_profile(
    request: Request,
    user_id: uuid.UUID,
    body: UserProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """Create or replace a user's profile settings."""
    user = await user_domain_service.update_profile(db, user_id, body)
    return ApiResponse[UserResponse](
        data=user, success=True, message="User profile updated", request_id=request_id,
    )


@router.get("/parent/{parent_id}/children", response_model=ApiResponse[list[UserResponse]])
async def list_children(
    parent_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """List a parent's active children, ordered by name."""
    children = await user_domain_service.get_children(db, parent_id)
    return ApiResponse[list[UserResponse]](
        data=children, success=True, message="Children retrieved", request_id=request_id,
    )


@router.delete("/{user_id}", response_model=ApiResponse[None])
@limiter.limit(settings.WRITE_RATE_LIMIT)
async def delete_user(
    request: Request,
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    request_id: Annotated[str, Depends(get_request_id)],
):
    """Deactivate a user (logical delete)."""
    await user_domain_service.delete_user(db, user_id)
    return ApiResponse[None](success=True, message="User deleted", request_id=request_id)
