"""
Request and response bodies for the users endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from poscore.common.responses import CamelModel


class RoleSummary(CamelModel):
    id: int
    name: str
    description: Optional[str] = None


class BranchSummary(CamelModel):
    id: int
    name: str
    code: str
    is_default: bool


class UserOut(CamelModel):
    """A user with its roles and branches."""
    id: int
    name: str
    username: Optional[str] = None
    email: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    roles: List[RoleSummary] = Field(default_factory=list)
    branches: List[BranchSummary] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user) -> "UserOut":
        """Build from a ``User`` loaded with its role and branch assignments."""
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
            roles=[RoleSummary.model_validate(ur.role) for ur in user.user_roles],
            branches=[
                BranchSummary(
                    id=ub.branch.id,
                    name=ub.branch.name,
                    code=ub.branch.code,
                    is_default=ub.is_default,
                )
                for ub in user.user_branches
            ],
        )


class CreateUserRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=8)


class UpdateUserRequest(CamelModel):
    """Partial update; only the fields sent are changed."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    is_active: Optional[bool] = None


class ChangeStatusRequest(CamelModel):
    is_active: bool


class AssignRolesRequest(CamelModel):
    role_ids: List[int] = Field(..., min_length=1)


class BranchAssignment(CamelModel):
    branch_id: int
    is_default: bool = False


class AssignBranchesRequest(CamelModel):
    branches: List[BranchAssignment] = Field(..., min_length=1)

    @field_validator("branches")
    @classmethod
    def single_default(cls, branches: List[BranchAssignment]) -> List[BranchAssignment]:
        if sum(1 for b in branches if b.is_default) > 1:
            raise ValueError("At most one branch can be the default")
        return branches
