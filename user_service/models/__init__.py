"""SQLAlchemy ORM models.

All models are imported here so that Alembic can discover them
via ``Base.metadata`` when generating migrations.
"""

from user_service.models.user import User, UserProfile, UserRole  # noqa: F401

__all__ = [
    "User",
    "UserProfile",
    "UserRole",
]
