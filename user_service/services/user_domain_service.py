"""User domain service.

Business rules for the user lifecycle: email uniqueness among active
users, parent/child linkage on creation, and logical deletion.
"""

import logging
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from user_service.core.exceptions import (
    DuplicateEmailError,
    InvalidParentError,
    ParentIdNotAllowedError,
    UserNotFoundError,
)
from user_service.models.user import User, UserRole
from user_service.repositories import user_repository
from user_service.schemas.user import (
    UserCreate,
    UserProfileResponse,
    UserProfileUpdate,
    UserResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

EMAIL_INDEX_NAME = "ux_users_email_active"


def to_user_response(user: User) -> UserResponse:
    """Map a loaded user aggregate to its transfer object."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        birth_date=user.birth_date,
        parent_id=user.parent_id,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
        profile=(
            UserProfileResponse.model_validate(user.profile)
            if user.profile is not None
            else None
        ),
    )


def _is_email_conflict(exc: IntegrityError) -> bool:
    # PostgreSQL names the index, SQLite names the column.
    detail = str(exc.orig)
    return EMAIL_INDEX_NAME in detail or "users.email" in detail


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> UserResponse | None:
    user = await user_repository.get_by_id(db, user_id)
    return to_user_response(user) if user is not None else None


async def _validate_parent(db: AsyncSession, body: UserCreate) -> None:
    if body.role == UserRole.PARENT:
        if body.parent_id is not None:
            raise ParentIdNotAllowedError()
        return

    if body.parent_id is None:
        raise InvalidParentError("Child users require a parentId")

    parent = await user_repository.get_by_id(db, body.parent_id)
    if parent is None or parent.role != UserRole.PARENT.value:
        raise InvalidParentError()


async def create_user(db: AsyncSession, body: UserCreate) -> UserResponse:
    """Create a parent or child user.

    Raises:
        DuplicateEmailError: The email belongs to an active user.
        InvalidParentError: A child without an active parent user.
        ParentIdNotAllowedError: A parent with a parentId.
    """
    if await user_repository.email_exists(db, body.email):
        raise DuplicateEmailError(body.email)

    await _validate_parent(db, body)

    now = datetime.now(timezone.utc)
    user = User(
        id=uuid.uuid4(),
        name=body.name,
        email=body.email,
        role=body.role.value,
        birth_date=body.birth_date,
        parent_id=body.parent_id,
        is_active=True,
        created_at=now,
        updated_at=now,
    )

    try:
        created = await user_repository.create(db, user)
    except IntegrityError as exc:
        if _is_email_conflict(exc):
            raise DuplicateEmailError(body.email) from exc
        raise

    logger.info("User %s created (role=%s)", created.id, created.role)
    return to_user_response(created)


async def update_user(
    db: AsyncSession, user_id: uuid.UUID, body: UserUpdate
) -> UserResponse:
    """Update name, email and birth date. Role and parent are immutable."""
    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if await user_repository.email_exists(db, body.email, exclude_user_id=user_id):
        raise DuplicateEmailError(body.email)

    user.name = body.name
    user.email = body.email
    user.birth_date = body.birth_date

    try:
        updated = await user_repository.update(db, user)
    except IntegrityError as exc:
        if _is_email_conflict(exc):
            raise DuplicateEmailError(body.email) from exc
        raise

    logger.info("User %s updated", user_id)
    return to_user_response(updated)


async def update_profile(
    db: AsyncSession, user_id: uuid.UUID, body: UserProfileUpdate
) -> UserResponse:
    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    updated = await user_repository.save_profile(db, user, body.model_dump())
    logger.info("Profile of user %s saved", user_id)
    return to_user_response(updated)


async def get_children(db: AsyncSession, parent_id: uuid.UUID) -> list[UserResponse]:
    children = await user_repository.get_children_by_parent_id(db, parent_id)
    return [to_user_response(child) for child in children]


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    user = await user_repository.get_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    await user_repository.delete(db, user_id)
    logger.info("User %s deactivated", user_id)


async def seed_sample_users(db: AsyncSession) -> int:
    """Insert a sample parent and child when the users table is empty."""
    count = (await db.execute(select(func.count(User.id)))).scalar() or 0
    if count:
        return 0

    now = datetime.now(timezone.utc)
    parent = User(
        id=uuid.uuid4(),
        name="Hanako Tanaka",
        email="hanako.tanaka@example.com",
        role=UserRole.PARENT.value,
        birth_date=date(1985, 5, 15),
        created_at=now,
        updated_at=now,
    )
    child = User(
        id=uuid.uuid4(),
        name="Taro Tanaka",
        email="taro.tanaka@example.com",
        role=UserRole.CHILD.value,
        birth_date=date(2015, 4, 1),
        parent=parent,
        created_at=now,
        updated_at=now,
    )
    db.add_all([parent, child])
    await db.flush()
    return 2
