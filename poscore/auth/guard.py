"""
Access Guard

Request-time permission gate. Each gated route is listed in
``ROUTE_PERMISSIONS`` under its route name together with the permission key
it requires; the guard resolves the caller's permissions on every request
and compares.
"""

from typing import Dict, Optional

from poscore.auth.permissions import PermissionResolver
from poscore.common.auth.exceptions import InsufficientPermissionsError, MissingTokenError
from poscore.common.error_handling import with_timeout
from poscore.common.logger import get_logger

logger = get_logger(__name__)

# Route name -> required permission key
ROUTE_PERMISSIONS: Dict[str, str] = {
    "list_users": "users.read",
    "create_user": "users.create",
    "get_user": "users.read",
    "update_user": "users.update",
    "change_user_status": "users.change_status",
    "assign_user_roles": "users.assign_roles",
    "assign_user_branches": "users.assign_branches",
    "list_roles": "roles.read",
    "create_role": "roles.create",
    "update_role": "roles.update",
    "assign_role_permissions": "roles.assign_permissions",
    "list_permissions": "permissions.read",
}

# Catalogue written by the seed script
PERMISSION_DESCRIPTIONS: Dict[str, str] = {
    "users.read": "List and view users",
    "users.create": "Create users",
    "users.update": "Edit users",
    "users.change_status": "Activate or deactivate users",
    "users.assign_roles": "Assign roles to users",
    "users.assign_branches": "Assign branches to users",
    "roles.read": "List and view roles",
    "roles.create": "Create roles",
    "roles.update": "Edit roles",
    "roles.assign_permissions": "Assign permissions to roles",
    "permissions.read": "List permissions",
}


def required_permission(route_name: Optional[str]) -> Optional[str]:
    """Look up the permission key a route requires, if any."""
    if route_name is None:
        return None
    return ROUTE_PERMISSIONS.get(route_name)


class AccessGuard:
    """
    Allows or denies a request given the permission it needs.

    Example:
        guard = AccessGuard(PermissionResolver(role_repository))
        await guard.check("users.read", user_id)
    """

    def __init__(self, resolver: PermissionResolver, timeout_seconds: float = 5.0):
        self._resolver = resolver
        self._timeout_seconds = timeout_seconds

    async def check(self, permission: Optional[str], user_id: Optional[int]) -> None:
        """
        Raise unless ``user_id`` holds ``permission``.

        Args:
            permission: The required key, or None when the route is not gated
            user_id: The authenticated user, or None for anonymous callers

        Raises:
            MissingTokenError: If a permission is required and there is no user
            InsufficientPermissionsError: If the user lacks the permission
            ServiceTimeoutError: If resolving permissions takes too long
        """
        if permission is None:
            return

        if user_id is None:
            raise MissingTokenError()

        granted = await with_timeout(
            self._resolver.resolve(user_id), self._timeout_seconds, "resolve_permissions"
        )
        if permission not in granted:
            logger.info(f"User {user_id} denied: missing permission '{permission}'")
            raise InsufficientPermissionsError(permission)
