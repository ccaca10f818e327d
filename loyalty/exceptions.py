"""
Custom exceptions and exception handlers for standardized error responses
"""
import logging
import traceback

import asyncpg
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from slowapi.errors import RateLimitExceeded

from .config import settings
from .response_models import error_response, ErrorCodes, get_status_code
from .validation import format_validation_errors

logger = logging.getLogger(__name__)


class APIException(Exception):
    """Base exception for API errors with standardized format"""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCodes.INTERNAL_ERROR,
        details: dict = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return get_status_code(self.error_code)


class AuthenticationError(APIException):
    """Authentication related errors"""

    def __init__(self, message: str, error_code: str = ErrorCodes.UNAUTHORIZED, details: dict = None):
        super().__init__(message, error_code, details)


class ValidationError(APIException):
    """Validation related errors"""

    def __init__(self, message: str, error_code: str = ErrorCodes.INVALID_INPUT, details: dict = None):
        super().__init__(message, error_code, details)


class NotFoundError(APIException):
    """Resource not found errors"""

    def __init__(self, message: str, error_code: str = ErrorCodes.NOT_FOUND, details: dict = None):
        super().__init__(message, error_code, details)


class ConflictError(APIException):
    """Unique constraint violations (phone numbers)"""

    def __init__(self, message: str, error_code: str = ErrorCodes.ALREADY_EXISTS, details: dict = None):
        super().__init__(message, error_code, details)


class InvalidStateError(APIException):
    """Operation not allowed in the entity's current state"""

    def __init__(self, message: str, error_code: str = ErrorCodes.INVALID_STATE, details: dict = None):
        super().__init__(message, error_code, details)


# Exception handlers

async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handler for custom API exceptions"""
    status_code = exc.status_code

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.error_code}): {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content=error_response(
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert HTTPException (including unmatched routes) to standardized format"""

    error_code_map = {
        400: ErrorCodes.INVALID_INPUT,
        401: ErrorCodes.UNAUTHORIZED,
        404: ErrorCodes.NOT_FOUND,
        405: ErrorCodes.INVALID_INPUT,
        409: ErrorCodes.ALREADY_EXISTS,
        413: ErrorCodes.PAYLOAD_TOO_LARGE,
        429: ErrorCodes.RATE_LIMIT_EXCEEDED,
        500: ErrorCodes.INTERNAL_ERROR,
    }

    error_code = error_code_map.get(exc.status_code, ErrorCodes.INTERNAL_ERROR)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=str(exc.detail),
            error_code=error_code
        ),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert Pydantic validation errors to standardized format"""

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(
            message="Validation Error",
            error_code=ErrorCodes.VALIDATION_ERROR,
            details={"errors": format_validation_errors(exc.errors())}
        )
    )


async def database_exception_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    """Normalize database engine errors without leaking internals"""

    logger.error(f"Database error on {request.method} {request.url.path}: {exc!r}")

    details = None
    if not settings.is_production:
        details = {"error": str(exc), "sqlstate": getattr(exc, "sqlstate", None)}

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(
            message="Database Error",
            error_code=ErrorCodes.DATABASE_ERROR,
            details=details
        )
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Envelope for slowapi limit breaches (sync: slowapi's middleware calls it directly)"""

    logger.warning(f"Rate limit exceeded for {request.method} {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_response(
            message="Too many requests, please try again later.",
            error_code=ErrorCodes.RATE_LIMIT_EXCEEDED,
            details={"limit": str(exc.detail)}
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unexpected exceptions"""

    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)

    details = None
    if not settings.is_production:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        details = {"error": str(exc), "stack": stack}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            message="Internal Server Error",
            error_code=ErrorCodes.INTERNAL_ERROR,
            details=details
        )
    )
