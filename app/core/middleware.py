from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
import logging
from typing import Sequence, Any

from app.schemas.result import Error, Result, ErrorCategory
from app.core.exception import CustomException

logger = logging.getLogger(__name__)


async def custom_exception_handler(request: Request, ex: CustomException) -> JSONResponse:
    """Handle custom application exceptions"""
    error = Error(
        message=ex.detail,
        status_code=ex.status_code,
        category=ex.category,
        code=ex.code,
    )
    return _create_error_response(error, headers=ex.headers)


async def validation_exception_handler(
    request: Request,
    ex: ValidationError | RequestValidationError | ResponseValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors"""
    validation_message = _format_validation_error(ex.errors())
    error = Error(
        message=validation_message,
        status_code=422,
        category=ErrorCategory.VALIDATION,
        code="VALIDATION_ERROR",
    )
    return _create_error_response(error)


async def http_exception_handler(request: Request, ex: StarletteHTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions"""
    category = _infer_category_from_status(ex.status_code)

    error = Error(
        message=ex.detail if isinstance(ex.detail, str) else str(ex.detail),
        status_code=ex.status_code,
        category=category,
    )
    return _create_error_response(error, headers=getattr(ex, "headers", None))


# Map exception types to their handlers, most specific first
EXCEPTION_HANDLERS = {
    CustomException: custom_exception_handler,
    ValidationError: validation_exception_handler,
    RequestValidationError: validation_exception_handler,
    ResponseValidationError: validation_exception_handler,
    StarletteHTTPException: http_exception_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the handlers on the application itself.

    FastAPI answers HTTP and request-validation errors before they reach any
    middleware, so they need to be registered here to share the Result envelope.
    """
    for exc_type, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_type, handler)


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """
    Centralized exception handling middleware for consistent API responses.
    Catches all exceptions and transforms them into standardized Result objects.
    """

    def __init__(self, app, log_internal_errors: bool = True):
        super().__init__(app)
        self.log_internal_errors = log_internal_errors

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as ex:
            return await self._handle_exception(ex, request)

    async def _handle_exception(self, ex: Exception, request: Request) -> JSONResponse:
        """Route exception to the appropriate handler."""
        for exc_type, handler in EXCEPTION_HANDLERS.items():
            if isinstance(ex, exc_type):
                return await handler(request, ex)

        # Default to internal server error
        return await self._handle_unhandled_exception(ex, request)

    async def _handle_unhandled_exception(
        self, ex: Exception, request: Request
    ) -> JSONResponse:
        """Handle unexpected exceptions"""
        if self.log_internal_errors:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}",
                exc_info=ex,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None,
                },
            )

        # Don't expose internal error details in production
        error = Error(
            message="An unexpected error occurred. Please try again later.",
            status_code=500,
            category=ErrorCategory.INTERNAL,
            code="INTERNAL_ERROR",
        )
        return _create_error_response(error)


def _create_error_response(error: Error, headers: dict | None = None) -> JSONResponse:
    """Create standardized JSON error response"""
    return JSONResponse(
        status_code=error.status_code,
        content=Result.failure(error).model_dump(mode="json"),
        headers=headers,
    )


def _format_validation_error(errors: Sequence[Any]) -> str:
    """Format validation errors into human-readable message"""
    messages = []
    for error in errors:
        loc = " -> ".join(str(loc) for loc in error.get("loc", []))
        msg = error.get("msg", "Unknown error")
        error_type = error.get("type", "unknown")

        messages.append(f"Error in {loc}: {msg} (type: {error_type})")

    return "; ".join(messages) if messages else "Validation failed"


def _infer_category_from_status(status_code: int) -> ErrorCategory:
    """Infer error category from HTTP status code"""
    status_category_map = {
        401: ErrorCategory.AUTHENTICATION,
        403: ErrorCategory.AUTHORIZATION,
        404: ErrorCategory.NOT_FOUND,
        409: ErrorCategory.RESOURCE_CONFLICT,
        422: ErrorCategory.VALIDATION,
    }
    if status_code in status_category_map:
        return status_category_map[status_code]
    elif 400 <= status_code < 500:
        return ErrorCategory.BAD_REQUEST
    elif status_code >= 500:
        return ErrorCategory.INTERNAL
    else:
        return ErrorCategory.CUSTOM
