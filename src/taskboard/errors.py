"""Domain errors and their translation into the JSON response envelope."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER
from .schemas.system import ErrorResponse, FieldError

logger = logging.getLogger(__name__)


class ApplicationError(Exception):
    """Base class for errors surfaced to API clients."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "application_error",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: Sequence[FieldError] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.errors = list(errors) if errors else None
        self.headers = dict(headers) if headers else None


class ValidationError(ApplicationError):
    """Malformed, missing or out-of-range input."""

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        errors: Sequence[FieldError] | None = None,
    ) -> None:
        super().__init__(
            message,
            code="validation_error",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=errors,
        )

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(errors=[FieldError(field=field, message=message)])


class DuplicateEmailError(ApplicationError):
    def __init__(self, message: str = "User with this email already exists") -> None:
        super().__init__(
            message,
            code="duplicate_email",
            status_code=status.HTTP_400_BAD_REQUEST,
            errors=[FieldError(field="email", message=message)],
        )


class InvalidCredentialsError(ApplicationError):
    """Unknown email or a password that does not match the stored hash."""

    def __init__(
        self,
        message: str = "Invalid email or password",
        *,
        status_code: int = status.HTTP_401_UNAUTHORIZED,
    ) -> None:
        super().__init__(message, code="invalid_credentials", status_code=status_code)


class InvalidTokenError(ApplicationError):
    """Missing, malformed, forged or expired identity token."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message,
            code="invalid_token",
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(ApplicationError):
    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message, code="forbidden", status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(ApplicationError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="not_found", status_code=status.HTTP_404_NOT_FOUND)


_HTTP_STATUS_MESSAGES: dict[int, tuple[str, str]] = {
    status.HTTP_401_UNAUTHORIZED: ("invalid_token", "Authentication required"),
    status.HTTP_403_FORBIDDEN: ("forbidden", "Access denied"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Route not found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("method_not_allowed", "Method not allowed"),
}


def _format_location(location: Sequence[Any]) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _field_errors(exc: RequestValidationError) -> list[FieldError]:
    return [
        FieldError(field=_format_location(error.get("loc", ())), message=str(error.get("msg", "")))
        for error in exc.errors()
    ]


def validation_error_from_pydantic(exc: PydanticValidationError) -> ValidationError:
    """Convert a pydantic error raised outside request parsing into a ``ValidationError``."""

    return ValidationError(
        errors=[
            FieldError(field=_format_location(error.get("loc", ())), message=str(error.get("msg", "")))
            for error in exc.errors()
        ]
    )


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    errors: Sequence[FieldError] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    payload = ErrorResponse(
        message=message,
        code=code,
        errors=list(errors) if errors else None,
        request_id=request_id,
    )
    response = JSONResponse(
        status_code=status_code,
        content=payload.model_dump(exclude_none=True),
    )
    if headers:
        response.headers.update(headers)
    if request_id:
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Register envelope-producing exception handlers on ``app``."""

    @app.exception_handler(ApplicationError)
    async def _handle_application_error(request: Request, exc: ApplicationError) -> JSONResponse:
        log = logger.error if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
        log(
            "Application error encountered",
            extra={"code": exc.code, "status_code": exc.status_code, "path": request.url.path},
        )
        return _error_response(
            request,
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            errors=exc.errors,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = _field_errors(exc)
        logger.warning(
            "Request validation failed",
            extra={"errors": [error.model_dump() for error in errors], "path": request.url.path},
        )
        return _error_response(
            request,
            status_code=status.HTTP_400_BAD_REQUEST,
            code="validation_error",
            message="Validation failed",
            errors=errors,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code, message = _HTTP_STATUS_MESSAGES.get(exc.status_code, ("http_error", str(exc.detail)))
        logger.warning(
            "HTTP exception raised",
            extra={"code": code, "status_code": exc.status_code, "path": request.url.path},
        )
        return _error_response(
            request,
            status_code=exc.status_code,
            code=code,
            message=message,
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def _handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled application error", extra={"path": request.url.path})
        return _error_response(
            request,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="server_error",
            message="Internal server error",
        )


__all__ = [
    "ApplicationError",
    "DuplicateEmailError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "NotFoundError",
    "ValidationError",
    "register_exception_handlers",
    "validation_error_from_pydantic",
]
