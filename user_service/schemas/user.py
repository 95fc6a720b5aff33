import uuid
from datetime import date, datetime

from email_validator import EmailNotValidError, validate_email
from pydantic import ConfigDict, Field, field_validator

from user_service.models.user import UserRole
from user_service.schemas.common import CamelModel


class UserWriteBase(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255)
    birth_date: date

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def email_syntax(cls, value: str) -> str:
        # Stored exactly as given; matching is case-sensitive.
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(f"email is not a valid address: {exc}") from exc
        return value

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, value: date) -> date:
        if value >= date.today():
            raise ValueError("birthDate must be before today")
        return value


class UserCreate(UserWriteBase):
    role: UserRole  # exactly "Child" or "Parent"
    parent_id: uuid.UUID | None = None


class UserUpdate(UserWriteBase):
    pass


class UserProfileUpdate(CamelModel):
    avatar_url: str | None = Field(None, max_length=500)
    theme: str = Field("default", min_length=1, max_length=20)
    language: str = Field("ja-JP", min_length=1, max_length=10)
    time_zone: str = Field("Asia/Tokyo", min_length=1, max_length=50)


class UserProfileResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    avatar_url: str | None = None
    theme: str
    language: str
    time_zone: str
    model_config = ConfigDict(from_attributes=True)


class UserResponse(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    birth_date: date
    parent_id: uuid.UUID | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    profile: UserProfileResponse | None = None
    model_config = ConfigDict(from_attributes=True)
