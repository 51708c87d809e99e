"""
Error Handling System for POS Core

This module provides the error taxonomy shared by every service:
1. A base exception carrying an error code, HTTP status and details
2. Specific errors for authentication, authorization, lookups and conflicts
3. A bounded-timeout helper for calls into the persistence layer
4. Error response generation and FastAPI exception handlers
"""

import asyncio
import logging
import traceback
from enum import Enum
from datetime import datetime
from typing import Any, Awaitable, Dict, Optional, TypeVar, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar('T')

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(Enum):
    """Standard error codes for POS Core"""
    UNKNOWN_ERROR = "unknown_error"
    VALIDATION_ERROR = "validation_error"
    AUTHENTICATION_ERROR = "authentication_error"
    AUTHORIZATION_ERROR = "authorization_error"
    NOT_FOUND_ERROR = "not_found_error"
    CONFLICT_ERROR = "conflict_error"
    TIMEOUT_ERROR = "timeout_error"


class ErrorInfo(BaseModel):
    """Structured information about an error"""
    model_config = ConfigDict(use_enum_values=True)

    code: ErrorCode
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    exception_type: Optional[str] = None


class PosCoreError(Exception):
    """Base exception class for all POS Core errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.details = details or {}
        self.cause = cause
        if status_code is not None:
            self.status_code = status_code

    def to_error_info(self) -> ErrorInfo:
        """Convert the exception to an ErrorInfo object"""
        return ErrorInfo(
            code=self.code,
            message=self.message,
            severity=self.severity,
            details=dict(self.details),
            exception_type=type(self).__name__
        )

    def __str__(self) -> str:
        base_str = f"{self.code.value}: {self.message}"
        if self.details:
            base_str += f" (details: {self.details})"
        return base_str


class UnauthenticatedError(PosCoreError):
    """Error raised when no valid credential or token is presented"""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_ERROR,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause
        )


class ForbiddenError(PosCoreError):
    """Error raised when an authenticated user lacks a required permission"""

    status_code = 403

    def __init__(self, message: str = "Forbidden", permission: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = details or {}
        if permission is not None:
            details["permission"] = permission
        super().__init__(
            message=message,
            code=ErrorCode.AUTHORIZATION_ERROR,
            severity=ErrorSeverity.WARNING,
            details=details
        )


class NotFoundError(PosCoreError):
    """Error raised when a referenced entity does not exist"""

    status_code = 404

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND_ERROR,
            severity=ErrorSeverity.INFO,
            details=details
        )


class ConflictError(PosCoreError):
    """Error raised when a uniqueness constraint would be violated"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = details or {}
        if field is not None:
            details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT_ERROR,
            severity=ErrorSeverity.INFO,
            details=details
        )


class ValidationError(PosCoreError):
    """Error raised when input validation fails"""

    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            severity=ErrorSeverity.WARNING,
            details=details
        )


class ServiceTimeoutError(PosCoreError):
    """Error raised when a downstream call does not finish in time"""

    status_code = 503

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        cause: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {}
        if operation is not None:
            details["operation"] = operation
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message=message,
            code=ErrorCode.TIMEOUT_ERROR,
            severity=ErrorSeverity.ERROR,
            details=details,
            cause=cause
        )


async def with_timeout(awaitable: Awaitable[T], timeout_seconds: float, operation: str) -> T:
    """
    Await ``awaitable`` for at most ``timeout_seconds``.

    Raises:
        ServiceTimeoutError: If the call does not complete in time
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        logger.error(f"Operation '{operation}' timed out after {timeout_seconds}s")
        raise ServiceTimeoutError(operation=operation, timeout_seconds=timeout_seconds, cause=e)


def convert_exception(
    exception: Exception,
    default_message: str = "Internal server error"
) -> PosCoreError:
    """
    Convert a standard exception to a PosCoreError.

    The original message of a foreign exception is not exposed to clients.
    """
    if isinstance(exception, PosCoreError):
        return exception

    return PosCoreError(message=default_message, cause=exception)


def error_response(
    error: Union[PosCoreError, Exception],
    include_details: bool = True
) -> Dict[str, Any]:
    """
    Generate a standardized API error response.

    Args:
        error: The error to generate a response for
        include_details: Whether to include error details

    Returns:
        Standardized error response dictionary
    """
    if not isinstance(error, PosCoreError):
        error = convert_exception(error)

    error_info = error.to_error_info()

    response = {
        "status": "error",
        "code": error_info.code,
        "message": error_info.message
    }

    if include_details and error_info.details:
        response["details"] = error_info.details

    return response


def log_error(
    error: Union[PosCoreError, Exception],
    level: int = logging.ERROR,
    include_stack_trace: bool = True,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log an error with standardized format.

    Args:
        error: The error to log
        level: Logging level
        include_stack_trace: Whether to include stack trace
        context: Additional context to include
    """
    if not isinstance(error, PosCoreError):
        error = convert_exception(error)

    message = f"ERROR [{error.code.value}]: {error.message}"

    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        message += f" (context: {context_str})"

    if error.cause:
        message += f" caused by {type(error.cause).__name__}: {str(error.cause)}"

    if include_stack_trace:
        message += f"\n{traceback.format_exc()}"

    logger.log(level, message)


async def poscore_error_handler(request: Request, exc: PosCoreError) -> JSONResponse:
    """Render a PosCoreError as a JSON error envelope."""
    if exc.status_code >= 500:
        log_error(exc, context={"path": request.url.path})
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures in the same envelope as other errors."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "")
        }
        for error in exc.errors()
    ]
    error = ValidationError("Request validation failed", details={"errors": errors})
    return JSONResponse(status_code=error.status_code, content=error_response(error))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions with their traceback and return a generic 500."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_response(exc, include_details=False))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the POS Core exception handlers on an application."""
    app.add_exception_handler(PosCoreError, poscore_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
