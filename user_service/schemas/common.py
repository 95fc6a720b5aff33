"""Response envelope shared by every endpoint.

All JSON field names are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidationErrorDetail(CamelModel):
    field: str
    message: str


class ErrorDetails(CamelModel):
    code: str
    message: str
    details: list[ValidationErrorDetail] = []


class ApiResponse(CamelModel, Generic[DataT]):
    data: DataT | None = None
    success: bool
    message: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    error: ErrorDetails | None = None
