"""
Credential Verifier

Checks a login identifier and password against the stored bcrypt hash.
An identifier containing ``@`` is looked up by email, anything else by
username. Every failure is reported to the caller as the same
``InvalidCredentialsError``; the actual reason is only logged.
"""

import asyncio
from typing import Optional

from poscore.common.auth.exceptions import InvalidCredentialsError
from poscore.common.auth.password import hash_password, verify_password
from poscore.common.logger import get_logger
from poscore.users.models import User
from poscore.users.repository import UserRepository

logger = get_logger(__name__)


class CredentialVerifier:
    """Resolves a login identifier to an active user with a matching password."""

    def __init__(self, users: UserRepository):
        self._users = users
        self._dummy_hash: Optional[str] = None

    async def _lookup(self, identifier: str) -> Optional[User]:
        if "@" in identifier:
            return await self._users.get_by_email(identifier)
        return await self._users.get_by_username(identifier)

    async def _check_password(self, password: str, password_hash: str) -> bool:
        # bcrypt is CPU bound; keep it off the event loop
        return await asyncio.to_thread(verify_password, password, password_hash)

    async def _burn_time(self, password: str) -> None:
        """Spend one bcrypt comparison so unknown identifiers are not faster to reject."""
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(hash_password, "not-a-real-password")
        await self._check_password(password, self._dummy_hash)

    async def verify(self, identifier: str, password: str) -> User:
        """
        Verify a login attempt.

        Args:
            identifier: Email address or username
            password: Plain-text password

        Returns:
            The matching user

        Raises:
            InvalidCredentialsError: If the user does not exist, is inactive,
                or the password does not match
        """
        user = await self._lookup(identifier)
        if user is None:
            await self._burn_time(password)
            logger.info("Login rejected: unknown identifier")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.info(f"Login rejected: user {user.id} is inactive")
            raise InvalidCredentialsError()

        if not await self._check_password(password, user.password_hash):
            logger.info(f"Login rejected: wrong password for user {user.id}")
            raise InvalidCredentialsError()

        return user
