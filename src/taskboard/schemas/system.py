"""Response envelope models shared by every endpoint."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class ApiModel(BaseModel):
    """Base for payloads exchanged with clients using camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(BaseModel):
    """A single input problem tied to a request field."""

    field: str = Field(description="Dotted path of the offending field")
    message: str = Field(description="Human-readable description of the problem")


class Envelope(BaseModel, Generic[DataT]):
    """Standard success envelope: ``{success, message?, data?}``."""

    success: bool = True
    message: str | None = None
    data: DataT | None = None


class ErrorResponse(BaseModel):
    """Error envelope returned by the exception handlers."""

    success: bool = Field(default=False, frozen=True)
    message: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error identifier")
    errors: list[FieldError] | None = Field(default=None, description="Field-level detail")
    request_id: str | None = Field(default=None, description="Correlation id of the request")


class HealthCheckResponse(BaseModel):
    success: bool = True
    message: str = "Server is running"
    environment: str
    version: str


__all__ = [
    "ApiModel",
    "DataT",
    "Envelope",
    "ErrorResponse",
    "FieldError",
    "HealthCheckResponse",
]
