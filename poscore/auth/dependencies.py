"""
FastAPI dependencies for the feature routers.

Services are built once in the application lifespan and kept on
``app.state``; these helpers hand them to route handlers. ``enforce_route_permission``
is attached to gated routers and runs the access guard for the matched route.
"""

from typing import Optional

from fastapi import Depends, Request

from poscore.audit.service import AuditContext
from poscore.auth.guard import AccessGuard, required_permission
from poscore.auth.service import AuthService
from poscore.common.auth.dependencies import get_optional_user_id
from poscore.roles.service import RoleService
from poscore.users.service import UserService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_role_service(request: Request) -> RoleService:
    return request.app.state.role_service


def get_access_guard(request: Request) -> AccessGuard:
    return request.app.state.access_guard


async def enforce_route_permission(
    request: Request,
    user_id: Optional[int] = Depends(get_optional_user_id),
    guard: AccessGuard = Depends(get_access_guard),
) -> Optional[int]:
    """
    Check the permission required by the route being called.

    Returns:
        The authenticated user id, if any

    Raises:
        MissingTokenError: If the route is gated and no token was sent
        InsufficientPermissionsError: If the caller lacks the permission
    """
    route = request.scope.get("route")
    await guard.check(required_permission(getattr(route, "name", None)), user_id)
    return user_id


def get_audit_context(
    request: Request,
    user_id: Optional[int] = Depends(get_optional_user_id),
) -> AuditContext:
    """Describe the caller for audit entries."""
    return AuditContext(
        user_id=user_id,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
