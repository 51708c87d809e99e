"""
Branch Repository

This module provides database access for branches.
"""

from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from poscore.branches.models import Branch


class BranchRepository:
    """Repository for reading branches."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def get_by_code(self, code: str) -> Optional[Branch]:
        async with self._session_factory() as session:
            result = await session.execute(select(Branch).where(Branch.code == code))
            return result.scalar_one_or_none()

    async def find_by_ids(self, branch_ids: Sequence[int]) -> List[Branch]:
        """Return the branches among ``branch_ids`` that exist, ordered by id."""
        if not branch_ids:
            return []
        async with self._session_factory() as session:
            result = await session.execute(
                select(Branch).where(Branch.id.in_(branch_ids)).order_by(Branch.id)
            )
            return list(result.scalars().all())

    async def create(self, branch: Branch) -> Branch:
        async with self._session_factory() as session:
            session.add(branch)
            await session.commit()
            await session.refresh(branch)
            return branch
