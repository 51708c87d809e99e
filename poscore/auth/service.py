"""
Authentication Service

Session facade over the credential verifier, the token issuer, the refresh
token registry and the permission resolver. A session moves through:

    Anonymous -> login -> Authenticated -> (access token expires) -> refresh
    -> Authenticated -> (logout, or refresh token expired/revoked) -> Anonymous

Refresh tokens are single use: a successful refresh revokes the token it
was given and registers the newly minted one.
"""

from datetime import datetime, timezone
from typing import List

from redis.exceptions import RedisError

from poscore.auth.credentials import CredentialVerifier
from poscore.auth.permissions import PermissionResolver
from poscore.common.auth.exceptions import AuthError, TokenRefreshError
from poscore.common.auth.jwt import TokenIssuer, TokenPair, TokenType
from poscore.common.auth.registry import RefreshTokenRegistry
from poscore.common.error_handling import UnauthenticatedError, with_timeout
from poscore.common.logger import get_logger, log_execution_time
from poscore.users.models import User
from poscore.users.repository import UserRepository

logger = get_logger(__name__)


class AuthService:
    """
    Orchestrates login, token refresh, logout and identity lookups.
    """

    def __init__(
        self,
        users: UserRepository,
        verifier: CredentialVerifier,
        issuer: TokenIssuer,
        registry: RefreshTokenRegistry,
        resolver: PermissionResolver,
        call_timeout_seconds: float = 5.0,
    ):
        """
        Initialize the service.

        Args:
            users: Repository used to stamp logins and load profiles
            verifier: Checks identifiers and passwords
            issuer: Mints and validates tokens
            registry: Tracks live refresh tokens
            resolver: Computes permission keys
            call_timeout_seconds: Upper bound for verifier and resolver calls
        """
        self._users = users
        self._verifier = verifier
        self._issuer = issuer
        self._registry = registry
        self._resolver = resolver
        self._timeout = call_timeout_seconds

    async def _issue_and_register(self, user: User) -> TokenPair:
        pair = self._issuer.issue(user.id, user.email, user.username)
        expires_at = datetime.now(timezone.utc) + self._issuer.config.refresh_token_expires
        await self._registry.register(pair.refresh_token, user.id, expires_at)
        return pair

    @log_execution_time(logger)
    async def login(self, identifier: str, password: str) -> TokenPair:
        """
        Authenticate with an email or username and a password.

        Returns:
            A fresh access/refresh token pair

        Raises:
            InvalidCredentialsError: If the identifier or password is rejected
            ServiceTimeoutError: If the credential check does not finish in time
        """
        user = await with_timeout(
            self._verifier.verify(identifier, password), self._timeout, "verify_credentials"
        )

        await self._users.set_last_login(user.id, datetime.now(timezone.utc))
        pair = await self._issue_and_register(user)

        logger.info(f"User {user.id} logged in")
        return pair

    async def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a live refresh token for a new token pair.

        Raises:
            TokenRefreshError: For any reason the token cannot be used
        """
        try:
            claims = self._issuer.validate(refresh_token, TokenType.REFRESH)

            owner = await self._registry.resolve(refresh_token)
            if owner is None or owner != claims.user_id:
                raise TokenRefreshError("Refresh token is not registered to this user")

            user = await with_timeout(self._users.get_by_id(claims.user_id), self._timeout, "load_user")
            if user is None or not user.is_active:
                raise TokenRefreshError(f"User {claims.user_id} is missing or inactive")

            # Only one caller can consume a given token
            if not await self._registry.revoke(refresh_token):
                raise TokenRefreshError("Refresh token was already used")

            pair = await self._issue_and_register(user)
        except AuthError as e:
            logger.info(f"Refresh rejected: {e.message}")
            raise TokenRefreshError() from e
        except Exception as e:
            # Store, database and timeout failures reach the client as the same 401
            logger.error(f"Refresh failed: {type(e).__name__}: {e}", exc_info=True)
            raise TokenRefreshError() from e

        logger.info(f"User {user.id} refreshed their session")
        return pair

    async def logout(self, refresh_token: str) -> None:
        """
        Revoke a refresh token. Unknown or already revoked tokens are ignored.
        """
        try:
            revoked = await self._registry.revoke(refresh_token)
        except RedisError as e:
            logger.error(f"Could not revoke refresh token during logout: {e}")
            return
        logger.info(f"Logout {'revoked a session' if revoked else 'for an unknown session'}")

    async def get_identity(self, user_id: int) -> User:
        """
        Load the profile, roles and branches of the authenticated user.

        Raises:
            UnauthenticatedError: If the user no longer exists
        """
        user = await with_timeout(
            self._users.get_by_id(user_id, with_assignments=True), self._timeout, "load_user"
        )
        if user is None:
            raise UnauthenticatedError("User not found")
        return user

    async def get_permissions(self, user_id: int) -> List[str]:
        """Return the user's permission keys, sorted."""
        keys = await with_timeout(self._resolver.resolve(user_id), self._timeout, "resolve_permissions")
        return sorted(keys)
