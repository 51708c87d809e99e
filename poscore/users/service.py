"""
Service layer for managing users.

Business rules live here: uniqueness of usernames and emails, password
hashing, existence checks for referenced roles and branches, and an audit
entry for every change.
"""

import asyncio
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import IntegrityError

from poscore.audit.service import AuditAction, AuditContext, AuditService
from poscore.branches.repository import BranchRepository
from poscore.common.auth.password import hash_password
from poscore.common.error_handling import ConflictError, NotFoundError
from poscore.common.logger import get_logger
from poscore.common.responses import Pagination
from poscore.common.utils import missing_ids, unique_ids
from poscore.roles.repository import RoleRepository
from poscore.users.models import User
from poscore.users.repository import UserRepository
from poscore.users.schemas import (
    AssignBranchesRequest,
    AssignRolesRequest,
    ChangeStatusRequest,
    CreateUserRequest,
    UpdateUserRequest,
)

logger = get_logger(__name__)

USER_ENTITY = "User"


def _user_snapshot(user: User) -> Dict[str, Any]:
    return {
        "name": user.name,
        "username": user.username,
        "email": user.email,
        "isActive": user.is_active,
    }


class UserService:
    """
    Provides business logic for user accounts.
    """

    def __init__(
        self,
        users: UserRepository,
        roles: RoleRepository,
        branches: BranchRepository,
        audit: AuditService,
    ):
        """
        Initialize the service with its repositories.

        Args:
            users: Repository for users and their assignments
            roles: Repository used to check that assigned roles exist
            branches: Repository used to check that assigned branches exist
            audit: Writer for the audit trail
        """
        self._users = users
        self._roles = roles
        self._branches = branches
        self._audit = audit

    async def list_users(self, pagination: Pagination) -> Tuple[List[User], int]:
        return await self._users.list_users(pagination.offset, pagination.limit)

    async def get_user(self, user_id: int) -> User:
        """
        Get a user with its roles and branches.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self._users.get_by_id(user_id, with_assignments=True)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")
        return user

    async def _ensure_unique(self, username=None, email=None) -> None:
        if username and await self._users.get_by_username(username):
            raise ConflictError(f'A user with username "{username}" already exists', field="username")
        if email and await self._users.get_by_email(email):
            raise ConflictError(f'A user with email "{email}" already exists', field="email")

    async def create_user(self, request: CreateUserRequest, context: AuditContext) -> User:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            ConflictError: If the username or email is already taken
        """
        await self._ensure_unique(request.username, request.email)

        password_hash = await asyncio.to_thread(hash_password, request.password)
        try:
            user = await self._users.create({
                "name": request.name,
                "username": request.username,
                "email": request.email,
                "password_hash": password_hash,
            })
        except IntegrityError as e:
            # Lost a race with a concurrent create
            raise ConflictError("A user with this username or email already exists") from e

        logger.info(f"Created user {user.id}")
        await self._audit.record(
            AuditAction.CREATE,
            USER_ENTITY,
            user.id,
            f'User "{user.name}" created',
            context,
            payload={"name": user.name, "username": user.username, "email": user.email},
        )
        return user

    async def update_user(self, user_id: int, request: UpdateUserRequest, context: AuditContext) -> User:
        """
        Update the fields present in ``request``.

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the new username or email belongs to another user
        """
        current = await self._users.get_by_id(user_id)
        if current is None:
            raise NotFoundError(f"User with id {user_id} not found")

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        await self._ensure_unique(
            changes.get("username") if changes.get("username") != current.username else None,
            changes.get("email") if changes.get("email") != current.email else None,
        )

        try:
            updated = await self._users.update(user_id, changes)
        except IntegrityError as e:
            raise ConflictError("A user with this username or email already exists") from e

        await self._audit.record(
            AuditAction.UPDATE,
            USER_ENTITY,
            user_id,
            f'User "{updated.name}" updated',
            context,
            payload={
                "previous": _user_snapshot(current),
                "updated": request.model_dump(exclude_unset=True, exclude_none=True, by_alias=True),
            },
        )
        return updated

    async def change_status(self, user_id: int, request: ChangeStatusRequest, context: AuditContext) -> User:
        """
        Activate or deactivate a user.

        Raises:
            NotFoundError: If the user does not exist
        """
        updated = await self._users.update(user_id, {"is_active": request.is_active})
        if updated is None:
            raise NotFoundError(f"User with id {user_id} not found")

        state = "activated" if request.is_active else "deactivated"
        logger.info(f"User {user_id} {state}")
        await self._audit.record(
            AuditAction.STATUS_CHANGE,
            USER_ENTITY,
            user_id,
            f'User "{updated.name}" {state}',
            context,
            payload={"isActive": request.is_active},
        )
        return updated

    async def assign_roles(self, user_id: int, request: AssignRolesRequest, context: AuditContext) -> User:
        """
        Replace the roles of a user.

        Raises:
            NotFoundError: If the user or any of the roles does not exist
        """
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")

        role_ids = unique_ids(request.role_ids)
        roles = await self._roles.find_by_ids(role_ids)
        missing = missing_ids(role_ids, [r.id for r in roles])
        if missing:
            raise NotFoundError(f"Roles not found: ids {missing}", details={"missingIds": missing})

        await self._users.replace_roles(user_id, role_ids)

        await self._audit.record(
            AuditAction.PERMISSION_CHANGE,
            USER_ENTITY,
            user_id,
            f'Roles of user "{user.name}" updated',
            context,
            payload={"roleIds": role_ids, "roleNames": [r.name for r in roles]},
        )
        return await self.get_user(user_id)

    async def assign_branches(self, user_id: int, request: AssignBranchesRequest, context: AuditContext) -> User:
        """
        Replace the branch memberships of a user.

        A branch listed more than once keeps its first ``isDefault`` flag.

        Raises:
            NotFoundError: If the user or any of the branches does not exist
        """
        user = await self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User with id {user_id} not found")

        assignments: Dict[int, bool] = {}
        for item in request.branches:
            assignments.setdefault(item.branch_id, item.is_default)

        branch_ids = list(assignments)
        branches = await self._branches.find_by_ids(branch_ids)
        missing = missing_ids(branch_ids, [b.id for b in branches])
        if missing:
            raise NotFoundError(f"Branches not found: ids {missing}", details={"missingIds": missing})

        await self._users.replace_branches(user_id, list(assignments.items()))

        await self._audit.record(
            AuditAction.UPDATE,
            USER_ENTITY,
            user_id,
            f'Branches of user "{user.name}" updated',
            context,
            payload={
                "branches": [{"branchId": b, "isDefault": d} for b, d in assignments.items()],
                "branchNames": [b.name for b in branches],
            },
        )
        return await self.get_user(user_id)
