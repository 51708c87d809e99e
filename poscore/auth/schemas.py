"""
Request and response bodies for the authentication endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from poscore.common.responses import CamelModel
from poscore.users.schemas import BranchSummary, RoleSummary


class LoginRequest(CamelModel):
    """
    Login with an email or a username.

    ``identifier`` is preferred; ``email`` is accepted for older clients.
    """
    identifier: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=1, max_length=255)
    password: str = Field(..., min_length=6)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.identifier and not self.email:
            raise ValueError("identifier or email is required")
        return self

    @property
    def login_identifier(self) -> str:
        return self.identifier or self.email


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class TokenPairOut(CamelModel):
    access_token: str
    refresh_token: str


class MessageOut(CamelModel):
    message: str


class MeOut(CamelModel):
    """The authenticated user's profile."""
    id: int
    name: str
    email: Optional[str] = None
    username: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    roles: List[RoleSummary] = Field(default_factory=list)
    branches: List[BranchSummary] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user) -> "MeOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            username=user.username,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            roles=[RoleSummary.model_validate(ur.role) for ur in user.user_roles],
            branches=[
                BranchSummary(id=ub.branch.id, name=ub.branch.name, code=ub.branch.code, is_default=ub.is_default)
                for ub in user.user_branches
            ],
        )
