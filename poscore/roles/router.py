"""
Roles Router

Role management and the permission catalogue.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status

from poscore.audit.service import AuditContext
from poscore.auth.dependencies import enforce_route_permission, get_audit_context, get_role_service
from poscore.common.responses import Envelope, Pagination, envelope, pagination_params
from poscore.roles.schemas import (
    AssignPermissionsRequest,
    CreateRoleRequest,
    PermissionOut,
    RoleListItem,
    RoleOut,
    RoleWithPermissionsOut,
    UpdateRoleRequest,
)
from poscore.roles.service import RoleService

router = APIRouter(tags=["roles"], dependencies=[Depends(enforce_route_permission)])


@router.get("/roles", response_model=Envelope[List[RoleListItem]])
async def list_roles(
    pagination: Pagination = Depends(pagination_params),
    service: RoleService = Depends(get_role_service),
):
    """Roles with their permissions and the number of users holding each."""
    rows, total = await service.list_roles(pagination)
    data = [
        RoleListItem(**RoleWithPermissionsOut.from_role(role).model_dump(), users_count=count)
        for role, count in rows
    ]
    return envelope(data, pagination.meta(total))


@router.post("/roles", response_model=Envelope[RoleOut], status_code=status.HTTP_201_CREATED)
async def create_role(
    body: CreateRoleRequest,
    context: AuditContext = Depends(get_audit_context),
    service: RoleService = Depends(get_role_service),
):
    role = await service.create_role(body, context)
    return envelope(RoleOut.model_validate(role))


@router.put("/roles/{role_id}", response_model=Envelope[RoleOut])
async def update_role(
    body: UpdateRoleRequest,
    role_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: RoleService = Depends(get_role_service),
):
    role = await service.update_role(role_id, body, context)
    return envelope(RoleOut.model_validate(role))


@router.put("/roles/{role_id}/permissions", response_model=Envelope[RoleWithPermissionsOut])
async def assign_role_permissions(
    body: AssignPermissionsRequest,
    role_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: RoleService = Depends(get_role_service),
):
    """Replace the role's permissions with the ones listed."""
    role = await service.assign_permissions(role_id, body, context)
    return envelope(RoleWithPermissionsOut.from_role(role))


@router.get("/permissions", response_model=Envelope[List[PermissionOut]])
async def list_permissions(service: RoleService = Depends(get_role_service)):
    """Every permission, ordered by key."""
    permissions = await service.list_permissions()
    return envelope(
        [PermissionOut.model_validate(p) for p in permissions],
        {"total": len(permissions)},
    )


__all__ = ["router"]
