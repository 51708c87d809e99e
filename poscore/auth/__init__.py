"""
Auth Module

Login sessions and request-time access control built on the token
primitives in ``poscore.common.auth``.
"""

from .credentials import CredentialVerifier
from .guard import PERMISSION_DESCRIPTIONS, ROUTE_PERMISSIONS, AccessGuard, required_permission
from .permissions import PermissionResolver
from .service import AuthService

__all__ = [
    "AccessGuard",
    "AuthService",
    "CredentialVerifier",
    "PERMISSION_DESCRIPTIONS",
    "PermissionResolver",
    "ROUTE_PERMISSIONS",
    "required_permission",
]
