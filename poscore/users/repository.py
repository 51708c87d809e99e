"""
User Repository

This module provides database access for users and their role and branch
assignments.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.orm import selectinload, sessionmaker

from poscore.branches.models import UserBranch
from poscore.common.logger import get_logger
from poscore.users.models import User, UserRole

logger = get_logger(__name__)


def _with_assignments():
    return (
        selectinload(User.user_roles).selectinload(UserRole.role),
        selectinload(User.user_branches).selectinload(UserBranch.branch),
    )


class UserRepository:
    """Repository for managing users in the database."""

    def __init__(self, session_factory: sessionmaker):
        """
        Initialize the repository with a session factory.

        Args:
            session_factory: SQLAlchemy session factory for creating database sessions
        """
        self._session_factory = session_factory

    async def get_by_id(self, user_id: int, with_assignments: bool = False) -> Optional[User]:
        """
        Get a user by id.

        Args:
            user_id: The id of the user
            with_assignments: Also load roles and branches

        Returns:
            The user if found, None otherwise
        """
        stmt = select(User).where(User.id == user_id)
        if with_assignments:
            stmt = stmt.options(*_with_assignments())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        async with self._session_factory() as session:
            result = await session.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()

    async def list_users(self, offset: int, limit: int) -> Tuple[List[User], int]:
        """Return a page of users ordered by id, and the total number of users."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(User)
                .options(*_with_assignments())
                .order_by(User.id)
                .offset(offset)
                .limit(limit)
            )
            users = list(result.scalars().all())
            total = await session.scalar(select(func.count()).select_from(User))
            return users, total or 0

    async def create(self, values: Dict[str, Any]) -> User:
        user = User(**values)
        async with self._session_factory() as session:
            session.add(user)
            await session.commit()
        return await self.get_by_id(user.id, with_assignments=True)

    async def update(self, user_id: int, values: Dict[str, Any]) -> Optional[User]:
        """Apply ``values`` to a user and return it reloaded, or None if it does not exist."""
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            user.update(values)
            await session.commit()
        return await self.get_by_id(user_id, with_assignments=True)

    async def set_last_login(self, user_id: int, when: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(User).where(User.id == user_id).values(last_login_at=when)
            )
            await session.commit()

    async def replace_roles(self, user_id: int, role_ids: Sequence[int]) -> None:
        """
        Replace every role assignment of a user with ``role_ids``.

        The delete and the inserts share one transaction; if any insert
        fails the previous assignments are left untouched.
        """
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(UserRole).where(UserRole.user_id == user_id))
                if role_ids:
                    await session.execute(
                        insert(UserRole),
                        [{"user_id": user_id, "role_id": rid} for rid in role_ids]
                    )
        logger.debug(f"User {user_id} now holds roles {list(role_ids)}")

    async def replace_branches(self, user_id: int, assignments: Sequence[Tuple[int, bool]]) -> None:
        """
        Replace every branch membership of a user.

        Args:
            user_id: The id of the user
            assignments: ``(branch_id, is_default)`` pairs
        """
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(UserBranch).where(UserBranch.user_id == user_id))
                if assignments:
                    await session.execute(
                        insert(UserBranch),
                        [
                            {"user_id": user_id, "branch_id": branch_id, "is_default": is_default}
                            for branch_id, is_default in assignments
                        ]
                    )
        logger.debug(f"User {user_id} now belongs to branches {[b for b, _ in assignments]}")
