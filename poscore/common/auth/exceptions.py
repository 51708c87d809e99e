"""
Authentication Exceptions

This module defines the exception classes raised by the token, credential
and permission layers. They specialise the shared error taxonomy so the
API renders them with the right status code.
"""

from poscore.common.error_handling import ForbiddenError, UnauthenticatedError


class AuthError(UnauthenticatedError):
    """Base exception for authentication errors."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Exception raised when a token is malformed, forged or of the wrong type."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class ExpiredTokenError(InvalidTokenError):
    """Exception raised when a token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message)


class MissingTokenError(AuthError):
    """Exception raised when a required bearer token is missing."""

    def __init__(self, message: str = "Authentication token is missing"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Exception raised when a login identifier or password is rejected."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class TokenRefreshError(AuthError):
    """Exception raised when a refresh token cannot be used."""

    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message)


class InsufficientPermissionsError(ForbiddenError):
    """Exception raised when a user does not hold a required permission."""

    def __init__(self, permission: str):
        super().__init__(f"Permission required: '{permission}'", permission=permission)
        self.permission = permission
