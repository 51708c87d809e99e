"""
Users Router

CRUD for back-office users plus role and branch assignment. Every route is
gated by the permission listed for it in ``ROUTE_PERMISSIONS``.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status

from poscore.audit.service import AuditContext
from poscore.auth.dependencies import enforce_route_permission, get_audit_context, get_user_service
from poscore.common.responses import Envelope, Pagination, envelope, pagination_params
from poscore.users.schemas import (
    AssignBranchesRequest,
    AssignRolesRequest,
    ChangeStatusRequest,
    CreateUserRequest,
    UpdateUserRequest,
    UserOut,
)
from poscore.users.service import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(enforce_route_permission)],
)


@router.get("", response_model=Envelope[List[UserOut]])
async def list_users(
    pagination: Pagination = Depends(pagination_params),
    service: UserService = Depends(get_user_service),
):
    users, total = await service.list_users(pagination)
    return envelope([UserOut.from_user(u) for u in users], pagination.meta(total))


@router.post("", response_model=Envelope[UserOut], status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    context: AuditContext = Depends(get_audit_context),
    service: UserService = Depends(get_user_service),
):
    user = await service.create_user(body, context)
    return envelope(UserOut.from_user(user))


@router.get("/{user_id}", response_model=Envelope[UserOut])
async def get_user(
    user_id: int = Path(..., ge=1),
    service: UserService = Depends(get_user_service),
):
    return envelope(UserOut.from_user(await service.get_user(user_id)))


@router.put("/{user_id}", response_model=Envelope[UserOut])
async def update_user(
    body: UpdateUserRequest,
    user_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: UserService = Depends(get_user_service),
):
    user = await service.update_user(user_id, body, context)
    return envelope(UserOut.from_user(user))


@router.patch("/{user_id}/status", response_model=Envelope[UserOut])
async def change_user_status(
    body: ChangeStatusRequest,
    user_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: UserService = Depends(get_user_service),
):
    user = await service.change_status(user_id, body, context)
    return envelope(UserOut.from_user(user))


@router.put("/{user_id}/roles", response_model=Envelope[UserOut])
async def assign_user_roles(
    body: AssignRolesRequest,
    user_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: UserService = Depends(get_user_service),
):
    """Replace the user's roles with the ones listed."""
    user = await service.assign_roles(user_id, body, context)
    return envelope(UserOut.from_user(user))


@router.put("/{user_id}/branches", response_model=Envelope[UserOut])
async def assign_user_branches(
    body: AssignBranchesRequest,
    user_id: int = Path(..., ge=1),
    context: AuditContext = Depends(get_audit_context),
    service: UserService = Depends(get_user_service),
):
    """Replace the user's branches with the ones listed."""
    user = await service.assign_branches(user_id, body, context)
    return envelope(UserOut.from_user(user))


__all__ = ["router"]
