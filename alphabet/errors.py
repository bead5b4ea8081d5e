"""
Application exceptions and the FastAPI handlers that render them.

Every error response has the same envelope:

    {"error": "NOT_FOUND", "message": "Match not found",
     "path": "/api/predictions", "request_id": "..."}
"""

import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for all application-level exceptions."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(AppError):
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"


class AuthenticationError(AppError):
    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"


class PermissionDeniedError(AppError):
    http_status = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class NotFoundError(AppError):
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class ConflictError(AppError):
    http_status = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class DeadlinePassedError(BadRequestError):
    error_code = "DEADLINE_PASSED"


class MatchNotOpenError(BadRequestError):
    error_code = "MATCH_NOT_OPEN"


class IllegalTransitionError(ConflictError):
    error_code = "ILLEGAL_TRANSITION"


def _get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get("X-Request-ID") or str(uuid.uuid4())


def _build_response(request: Request, http_status: int, error_code: str, message: str) -> JSONResponse:
    request_id = _get_request_id(request)
    return JSONResponse(
        status_code=http_status,
        content={
            "error": error_code,
            "message": message,
            "path": request.url.path,
            "request_id": request_id,
        },
        headers={"X-Request-ID": request_id},
    )


async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "%s %s -> %s: %s", request.method, request.url.path, exc.error_code, exc.message,
        extra={"request_id": _get_request_id(request)},
    )
    return _build_response(request, exc.http_status, exc.error_code, exc.message)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.warning(
        "%s %s -> HTTP %s: %s", request.method, request.url.path, exc.status_code, exc.detail,
        extra={"request_id": _get_request_id(request)},
    )
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _build_response(request, exc.status_code, f"HTTP_{exc.status_code}", message)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first offending field, e.g. "body.matchId: Field required"
    errors = exc.errors()
    message = "Request validation failed"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", []))
        message = f"{location}: {first.get('msg', 'invalid value')}"
    return _build_response(request, 422, "VALIDATION_ERROR", message)


async def _handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path,
        exc_info=exc,
        extra={"request_id": _get_request_id(request)},
    )
    return _build_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "Internal server error",
    )


async def request_id_middleware(request: Request, call_next):
    """Stamp every request with an ID and echo it in the response headers."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def add_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application."""
    app.add_exception_handler(AppError, _handle_app_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unhandled_exception)
