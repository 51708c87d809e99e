"""
Service layer for managing roles and their permission grants.
"""

from typing import List, Tuple

from sqlalchemy.exc import IntegrityError

from poscore.audit.service import AuditAction, AuditContext, AuditService
from poscore.common.error_handling import ConflictError, NotFoundError
from poscore.common.logger import get_logger
from poscore.common.responses import Pagination
from poscore.common.utils import missing_ids, unique_ids
from poscore.roles.models import Permission, Role
from poscore.roles.repository import RoleRepository
from poscore.roles.schemas import AssignPermissionsRequest, CreateRoleRequest, UpdateRoleRequest

logger = get_logger(__name__)

ROLE_ENTITY = "Role"


class RoleService:
    """
    Provides business logic for roles and the permission catalogue.
    """

    def __init__(self, roles: RoleRepository, audit: AuditService):
        self._roles = roles
        self._audit = audit

    async def list_roles(self, pagination: Pagination) -> Tuple[List[Tuple[Role, int]], int]:
        return await self._roles.list_roles(pagination.offset, pagination.limit)

    async def create_role(self, request: CreateRoleRequest, context: AuditContext) -> Role:
        """
        Create a role.

        Raises:
            ConflictError: If a role with the same name exists
        """
        if await self._roles.get_by_name(request.name):
            raise ConflictError(f'A role named "{request.name}" already exists', field="name")

        try:
            role = await self._roles.create(request.name, request.description)
        except IntegrityError as e:
            raise ConflictError(f'A role named "{request.name}" already exists', field="name") from e

        logger.info(f"Created role {role.id} ({role.name})")
        await self._audit.record(
            AuditAction.CREATE,
            ROLE_ENTITY,
            role.id,
            f'Role "{role.name}" created',
            context,
            payload={"name": role.name, "description": role.description},
        )
        return role

    async def update_role(self, role_id: int, request: UpdateRoleRequest, context: AuditContext) -> Role:
        """
        Update the name and/or description of a role.

        Raises:
            NotFoundError: If the role does not exist
            ConflictError: If the new name belongs to another role
        """
        current = await self._roles.get_by_id(role_id)
        if current is None:
            raise NotFoundError(f"Role with id {role_id} not found")

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        new_name = changes.get("name")
        if new_name and new_name != current.name and await self._roles.get_by_name(new_name):
            raise ConflictError(f'A role named "{new_name}" already exists', field="name")

        try:
            updated = await self._roles.update(role_id, changes)
        except IntegrityError as e:
            raise ConflictError(f'A role named "{new_name}" already exists', field="name") from e

        await self._audit.record(
            AuditAction.UPDATE,
            ROLE_ENTITY,
            role_id,
            f'Role "{updated.name}" updated',
            context,
            payload={
                "previous": {"name": current.name, "description": current.description},
                "updated": changes,
            },
        )
        return updated

    async def assign_permissions(self, role_id: int, request: AssignPermissionsRequest,
                                 context: AuditContext) -> Role:
        """
        Replace the permissions granted by a role.

        Raises:
            NotFoundError: If the role or any of the permissions does not exist
        """
        role = await self._roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError(f"Role with id {role_id} not found")

        permission_ids = unique_ids(request.permission_ids)
        permissions = await self._roles.find_permissions_by_ids(permission_ids)
        missing = missing_ids(permission_ids, [p.id for p in permissions])
        if missing:
            raise NotFoundError(f"Permissions not found: ids {missing}", details={"missingIds": missing})

        await self._roles.replace_permissions(role_id, permission_ids)

        await self._audit.record(
            AuditAction.PERMISSION_CHANGE,
            ROLE_ENTITY,
            role_id,
            f'Permissions of role "{role.name}" updated',
            context,
            payload={"permissionIds": permission_ids, "permissionKeys": [p.key for p in permissions]},
        )
        return await self._roles.get_by_id(role_id, with_permissions=True)

    async def list_permissions(self) -> List[Permission]:
        return await self._roles.list_permissions()
