"""
Authentication Framework

This package provides the building blocks of authentication: JWT access and
refresh tokens, bcrypt password hashing, the refresh token registry and the
FastAPI dependencies that authenticate a request.
"""

from poscore.common.auth.jwt import (
    JWTConfig,
    TokenClaims,
    TokenIssuer,
    TokenPair,
    TokenType,
)

from poscore.common.auth.password import (
    hash_password,
    verify_password,
)

from poscore.common.auth.registry import (
    InMemoryRefreshTokenRegistry,
    RedisRefreshTokenRegistry,
    RefreshTokenRegistry,
    create_registry,
)

from poscore.common.auth.exceptions import (
    AuthError,
    ExpiredTokenError,
    InsufficientPermissionsError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingTokenError,
    TokenRefreshError,
)

from .dependencies import get_current_user_id, get_optional_user_id

# Public API
__all__ = [
    # JWT tokens
    'JWTConfig',
    'TokenClaims',
    'TokenIssuer',
    'TokenPair',
    'TokenType',

    # Password utilities
    'hash_password',
    'verify_password',

    # Refresh token registry
    'InMemoryRefreshTokenRegistry',
    'RedisRefreshTokenRegistry',
    'RefreshTokenRegistry',
    'create_registry',

    # Exceptions
    'AuthError',
    'ExpiredTokenError',
    'InsufficientPermissionsError',
    'InvalidCredentialsError',
    'InvalidTokenError',
    'MissingTokenError',
    'TokenRefreshError',

    'get_current_user_id',
    'get_optional_user_id',
]
