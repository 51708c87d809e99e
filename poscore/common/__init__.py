"""
Common Components for POS Core

This package contains infrastructure shared by every feature module of the
POS Core API.

Key components:
1. Logging - Centralized logging configuration
2. Error Handling - Error taxonomy and FastAPI exception handlers
3. Authentication - Tokens, password hashing and the refresh token registry
4. Responses - The success envelope and pagination parameters
"""

# Initialize logging
from poscore.common.logger import app_logger

from poscore.common.error_handling import (
    ConflictError,
    ErrorCode,
    ForbiddenError,
    NotFoundError,
    PosCoreError,
    ServiceTimeoutError,
    UnauthenticatedError,
    ValidationError,
    register_exception_handlers,
)

from poscore.common.responses import CamelModel, Envelope, Pagination, pagination_params

__all__ = [
    # Logging
    'app_logger',

    # Errors
    'ConflictError',
    'ErrorCode',
    'ForbiddenError',
    'NotFoundError',
    'PosCoreError',
    'ServiceTimeoutError',
    'UnauthenticatedError',
    'ValidationError',
    'register_exception_handlers',

    # Responses
    'CamelModel',
    'Envelope',
    'Pagination',
    'pagination_params',
]
