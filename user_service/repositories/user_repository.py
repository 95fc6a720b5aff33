"""User repository.

Query helpers for users and their profiles. Every read is scoped to active
users and returns the aggregate (profile, parent, children) eagerly loaded,
since lazy loads are not available on an ``AsyncSession``.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from user_service.models.user import User, UserProfile


def _aggregate_query():
    return select(User).options(
        selectinload(User.profile),
        selectinload(User.parent),
        selectinload(User.children),
    )


async def get_by_id(db: AsyncSession, user_id: uuid.UUID) -> User | None:
    """Return the active user with the given id, or None."""
    result = await db.execute(
        _aggregate_query()
        .where(User.id == user_id, User.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> User | None:
    """Return the active user owning ``email`` (exact match), or None."""
    result = await db.execute(
        _aggregate_query()
        .where(User.email == email, User.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_children_by_parent_id(
    db: AsyncSession, parent_id: uuid.UUID
) -> Sequence[User]:
    """Active children of a parent, ordered by name."""
    result = await db.execute(
        select(User)
        .options(selectinload(User.profile))
        .where(User.parent_id == parent_id, User.is_active.is_(True))
        .order_by(User.name)
    )
    return result.scalars().all()


async def _reload(db: AsyncSession, user_id: uuid.UUID, action: str) -> User:
    user = await get_by_id(db, user_id)
    if user is None:
        raise RuntimeError(f"User {user_id} could not be re-read after {action}")
    return user


async def create(db: AsyncSession, user: User) -> User:
    """Insert a user and return the freshly loaded aggregate.

    Raises ``sqlalchemy.exc.IntegrityError`` when a storage constraint
    (such as the active-email unique index) rejects the row.
    """
    db.add(user)
    await db.flush()
    return await _reload(db, user.id, "create")


async def update(db: AsyncSession, user: User) -> User:
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return await _reload(db, user.id, "update")


async def delete(db: AsyncSession, user_id: uuid.UUID) -> None:
    """Logically delete a user. Profile and relationships are kept."""
    user = await db.get(User, user_id)
    if user is None:
        return
    user.is_active = False
    user.updated_at = datetime.now(timezone.utc)
    await db.flush()


async def email_exists(
    db: AsyncSession,
    email: str,
    exclude_user_id: uuid.UUID | None = None,
) -> bool:
    conditions = [User.email == email, User.is_active.is_(True)]
    if exclude_user_id is not None:
        conditions.append(User.id != exclude_user_id)

    result = await db.execute(select(exists().where(*conditions)))
    return bool(result.scalar())


async def save_profile(db: AsyncSession, user: User, values: dict) -> User:
    """Create or update the user's profile and return the reloaded user."""
    now = datetime.now(timezone.utc)
    if user.profile is None:
        db.add(UserProfile(user_id=user.id, created_at=now, updated_at=now, **values))
    else:
        for field, value in values.items():
            setattr(user.profile, field, value)
        user.profile.updated_at = now

    await db.flush()
    return await _reload(db, user.id, "profile update")
