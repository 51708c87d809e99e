"""
Request and response bodies for the roles and permissions endpoints.
"""

from typing import List, Optional

from pydantic import Field

from poscore.common.responses import CamelModel


class PermissionOut(CamelModel):
    id: int
    key: str
    description: Optional[str] = None


class RoleOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None


class RoleWithPermissionsOut(RoleOut):
    permissions: List[PermissionOut] = Field(default_factory=list)

    @classmethod
    def from_role(cls, role) -> "RoleWithPermissionsOut":
        """Build from a ``Role`` loaded with its grants."""
        return cls(
            id=role.id,
            name=role.name,
            description=role.description,
            permissions=[PermissionOut.model_validate(rp.permission) for rp in role.role_permissions],
        )


class RoleListItem(RoleWithPermissionsOut):
    users_count: int = 0


class CreateRoleRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class UpdateRoleRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class AssignPermissionsRequest(CamelModel):
    permission_ids: List[int] = Field(..., min_length=1)
