"""
Role Repository

This module provides database access for roles, the permission catalogue
and role grants.
"""

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import selectinload, sessionmaker

from poscore.common.logger import get_logger
from poscore.roles.models import Permission, Role, RolePermission
from poscore.users.models import UserRole

logger = get_logger(__name__)


def _with_permissions():
    return selectinload(Role.role_permissions).selectinload(RolePermission.permission)


class RoleRepository:
    """Repository for managing roles and permissions in the database."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the repository with a session factory.

        Args:
            session_factory: SQLAlchemy session factory for creating database sessions
        """
        self._session_factory = session_factory

    async def list_roles(self, offset: int, limit: int) -> Tuple[List[Tuple[Role, int]], int]:
        """
        Get a page of roles, each with its permissions and user count.

        Returns:
            A list of ``(role, users_count)`` pairs ordered by id, and the
            total number of roles
        """
        users_count = (
            select(func.count(UserRole.user_id))
            .where(UserRole.role_id == Role.id)
            .correlate(Role)
            .scalar_subquery()
        )
        async with self._session_factory() as session:
            result = await session.execute(
                select(Role, users_count)
                .options(_with_permissions())
                .order_by(Role.id)
                .offset(offset)
                .limit(limit)
            )
            rows = [(role, count) for role, count in result.all()]
            total = await session.scalar(select(func.count()).select_from(Role))
            return rows, total or 0

    async def get_by_id(self, role_id: int, with_permissions: bool = False) -> Optional[Role]:
        stmt = select(Role).where(Role.id == role_id)
        if with_permissions:
            stmt = stmt.options(_with_permissions())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Optional[Role]:
        async with self._session_factory() as session:
            result = await session.execute(select(Role).where(Role.name == name))
            return result.scalar_one_or_none()

    async def find_by_ids(self, role_ids: Sequence[int]) -> List[Role]:
        """Return the roles among ``role_ids`` that exist, ordered by id."""
        if not role_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(Role).where(Role.id.in_(role_ids)).order_by(Role.id)
            )
            return list(result.scalars().all())

    async def create(self, name: str, description: Optional[str] = None) -> Role:
        role = Role(name=name, description=description)
        async with self._session_factory() as session:
            session.add(role)
            await session.commit()
            await session.refresh(role)
            return role

    async def update(self, role_id: int, values: Dict[str, Any]) -> Optional[Role]:
        """Apply ``values`` to a role and return it, or None if it does not exist."""
        async with self._session_factory() as session:
            role = await session.get(Role, role_id)
            if role is None:
                return None
            role.update(values)
            await session.commit()
            await session.refresh(role)
            return role

    async def replace_permissions(self, role_id: int, permission_ids: Sequence[int]) -> None:
        """
        Replace every grant of a role with ``permission_ids``.

        The delete and the inserts share one transaction; if any insert
        fails the previous grants are left untouched.
        """
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
                if permission_ids:
                    await session.execute(
                        insert(RolePermission),
                        [{"role_id": role_id, "permission_id": pid} for pid in permission_ids]
                    )
        logger.debug(f"Role {role_id} now grants permissions {list(permission_ids)}")

    async def list_permissions(self) -> List[Permission]:
        """Return the whole permission catalogue ordered by key."""
        async with self._session_factory() as session:
            result = await session.execute(select(Permission).order_by(Permission.key))
            return list(result.scalars().all())

    async def find_permissions_by_ids(self, permission_ids: Sequence[int]) -> List[Permission]:
        if not permission_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(Permission).where(Permission.id.in_(permission_ids)).order_by(Permission.id)
            )
            return list(result.scalars().all())

    async def get_permission_keys_for_user(self, user_id: int) -> Set[str]:
        """
        Collect the keys of every permission granted to any role of a user.

        Returns:
            The deduplicated set of keys, empty if the user holds no roles
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(Permission.key)
                .join(RolePermission, RolePermission.permission_id == Permission.id)
                .join(UserRole, UserRole.role_id == RolePermission.role_id)
                .where(UserRole.user_id == user_id)
                .distinct()
            )
            return set(result.scalars().all())

    async def ensure_permissions(self, catalogue: Dict[str, str]) -> List[Permission]:
        """
        Insert any permission of ``catalogue`` (key -> description) that is missing.

        Existing permissions keep their description. Returns the full catalogue.
        """
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(select(Permission.key))
                existing = set(result.scalars().all())
                for key, description in catalogue.items():
                    if key not in existing:
                        session.add(Permission(key=key, description=description))
        return await self.list_permissions()
