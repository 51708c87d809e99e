"""
Refresh Token Registry

This module tracks which refresh tokens are currently valid and which user
each one belongs to. The session layer depends only on the abstract
interface; two backends are provided:

- ``InMemoryRefreshTokenRegistry``: a lock-guarded dictionary. Sessions are
  lost on restart and are not shared between server instances.
- ``RedisRefreshTokenRegistry``: entries live in Redis with a TTL matching
  the token's own expiry, so every instance sees the same sessions.
"""

import hashlib
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from redis.asyncio import Redis

from poscore.common.redis import get_redis_client, reset_redis_client

from poscore.common.logger import get_logger

logger = get_logger(__name__)


class RefreshTokenRegistry(ABC):
    """Key/value store mapping a refresh token to the id of its owner."""

    @abstractmethod
    async def register(self, token: str, user_id: int, expires_at: Optional[datetime] = None) -> None:
        """
        Record ``token`` as valid for ``user_id``.

        An existing entry for the same token is overwritten. When
        ``expires_at`` is given the entry disappears after that moment.
        """

    @abstractmethod
    async def resolve(self, token: str) -> Optional[int]:
        """Return the owner of ``token``, or None if it is unknown or revoked."""

    @abstractmethod
    async def revoke(self, token: str) -> bool:
        """
        Forget ``token``. Revoking an unknown token is a no-op.

        Returns:
            True if the token was registered, so concurrent callers can
            tell which of them consumed it
        """

    async def close(self) -> None:
        """Release any resources held by the backend."""


class InMemoryRefreshTokenRegistry(RefreshTokenRegistry):
    """
    Process-local registry backed by a dictionary.

    All three operations take the same lock, so they are atomic with
    respect to each other even when called from worker threads.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[int, Optional[float]]] = {}
        self._lock = threading.RLock()

    async def register(self, token: str, user_id: int, expires_at: Optional[datetime] = None) -> None:
        deadline = expires_at.timestamp() if expires_at is not None else None
        with self._lock:
            self._entries[token] = (user_id, deadline)

    async def resolve(self, token: str) -> Optional[int]:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            user_id, deadline = entry
            if deadline is not None and time.time() >= deadline:
                del self._entries[token]
                return None
            return user_id

    async def revoke(self, token: str) -> bool:
        with self._lock:
            entry = self._entries.pop(token, None)
        if entry is None:
            return False
        _, deadline = entry
        return deadline is None or time.time() < deadline

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisRefreshTokenRegistry(RefreshTokenRegistry):
    """
    Registry shared through Redis.

    Tokens are stored under a SHA-256 digest so raw tokens never reach the
    store. Each key expires together with the token it represents.
    """

    def __init__(self, redis: Redis, prefix: str = "refresh_token:"):
        self.redis = redis
        self.prefix = prefix

    def _key(self, token: str) -> str:
        return f"{self.prefix}{hashlib.sha256(token.encode('utf-8')).hexdigest()}"

    async def register(self, token: str, user_id: int, expires_at: Optional[datetime] = None) -> None:
        ttl = None
        if expires_at is not None:
            ttl = max(1, int(expires_at.timestamp() - datetime.now(timezone.utc).timestamp()))
        await self.redis.set(self._key(token), str(user_id), ex=ttl)

    async def resolve(self, token: str) -> Optional[int]:
        value = await self.redis.get(self._key(token))
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return int(value)

    async def revoke(self, token: str) -> bool:
        return bool(await self.redis.delete(self._key(token)))

    async def close(self) -> None:
        await reset_redis_client()


def create_registry(settings) -> RefreshTokenRegistry:
    """Build the registry selected by ``REFRESH_TOKEN_STORE``."""
    if settings.REFRESH_TOKEN_STORE == "redis":
        logger.info("Using Redis refresh token registry")
        return RedisRefreshTokenRegistry(get_redis_client(settings.REDIS_URL))

    logger.warning(
        "Using in-memory refresh token registry; sessions do not survive a restart "
        "and are not shared between instances"
    )
    return InMemoryRefreshTokenRegistry()
