"""Exception handlers translating failures into the response envelope.

Domain errors are raised by the service layer and handled here, once.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_service.core.dependencies import REQUEST_ID_HEADER, resolve_request_id
from user_service.core.exceptions import UserServiceError
from user_service.schemas.common import ApiResponse, ErrorDetails, ValidationErrorDetail

logger = logging.getLogger(__name__)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list[ValidationErrorDetail] | None = None,
) -> JSONResponse:
    request_id = resolve_request_id(request)
    envelope = ApiResponse[None](
        success=False,
        message=message,
        request_id=request_id,
        error=ErrorDetails(code=code, message=message, details=details or []),
    )
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
        headers={REQUEST_ID_HEADER: request_id},
    )


def _field_name(loc: tuple) -> str:
    # ("body", "birthDate") -> "birthDate"; ("path", "user_id") -> "user_id"
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


async def user_service_error_handler(request: Request, exc: UserServiceError) -> JSONResponse:
    status_code = (
        status.HTTP_404_NOT_FOUND
        if exc.code == "NOT_FOUND"
        else status.HTTP_400_BAD_REQUEST
    )
    logger.warning(
        "%s %s rejected (%s): %s",
        request.method, request.url.path, exc.code, exc.message,
    )
    return error_response(request, status_code, exc.code, exc.message)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        ValidationErrorDetail(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", ""))
        for err in exc.errors()
    ]
    logger.warning(
        "%s %s invalid request: %d error(s)",
        request.method, request.url.path, len(details),
    )
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "One or more validation errors occurred",
        details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = "NOT_FOUND" if exc.status_code == status.HTTP_404_NOT_FOUND else "HTTP_ERROR"
    response = error_response(request, exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    response = error_response(
        request,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "RATE_LIMITED",
        f"Too many requests: {exc.detail}",
    )
    response.headers["Retry-After"] = "60"
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal server error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserServiceError, user_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
