"""
Tests for the authentication service, with the persistence layer mocked.
"""

import asyncio
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from poscore.auth.service import AuthService
from poscore.common.auth.exceptions import InvalidCredentialsError, TokenRefreshError
from poscore.common.auth.jwt import JWTConfig, TokenIssuer, TokenType
from poscore.common.auth.registry import InMemoryRefreshTokenRegistry
from poscore.common.error_handling import ServiceTimeoutError, UnauthenticatedError


@pytest.fixture
def user():
    return SimpleNamespace(id=1, email="ana@example.com", username="ana", is_active=True)


@pytest.fixture
def issuer():
    return TokenIssuer(JWTConfig(
        access_secret="access-secret-for-tests-0123456789abcdef",
        refresh_secret="refresh-secret-for-tests-0123456789abcdef",
        access_token_expires=timedelta(minutes=15),
        refresh_token_expires=timedelta(days=7),
    ))


@pytest.fixture
def parts(user, issuer):
    users = AsyncMock()
    users.get_by_id.return_value = user
    verifier = AsyncMock()
    verifier.verify.return_value = user
    resolver = AsyncMock()
    resolver.resolve.return_value = {"users.read", "roles.read"}
    return SimpleNamespace(
        users=users,
        verifier=verifier,
        resolver=resolver,
        issuer=issuer,
        registry=InMemoryRefreshTokenRegistry(),
    )


@pytest.fixture
def service(parts):
    return AuthService(
        users=parts.users,
        verifier=parts.verifier,
        issuer=parts.issuer,
        registry=parts.registry,
        resolver=parts.resolver,
        call_timeout_seconds=1.0,
    )


@pytest.mark.asyncio
async def test_login_issues_and_registers_pair(service, parts):
    pair = await service.login("ana@example.com", "secret")

    claims = parts.issuer.validate(pair.access_token, TokenType.ACCESS)
    assert claims.user_id == 1
    assert claims.email == "ana@example.com"
    assert await parts.registry.resolve(pair.refresh_token) == 1
    parts.users.set_last_login.assert_awaited_once()


@pytest.mark.asyncio
async def test_login_rejected(service, parts):
    parts.verifier.verify.side_effect = InvalidCredentialsError()

    with pytest.raises(InvalidCredentialsError):
        await service.login("ana@example.com", "wrong")

    assert len(parts.registry) == 0
    parts.users.set_last_login.assert_not_called()


@pytest.mark.asyncio
async def test_login_times_out(service, parts):
    async def slow(identifier, password):
        await asyncio.sleep(5)

    parts.verifier.verify.side_effect = slow
    service._timeout = 0.01

    with pytest.raises(ServiceTimeoutError):
        await service.login("ana@example.com", "secret")


@pytest.mark.asyncio
async def test_refresh_rotates_token(service, parts):
    first = await service.login("ana@example.com", "secret")

    second = await service.refresh(first.refresh_token)

    assert second.refresh_token != first.refresh_token
    assert await parts.registry.resolve(first.refresh_token) is None
    assert await parts.registry.resolve(second.refresh_token) == 1


@pytest.mark.asyncio
async def test_refresh_token_is_single_use(service):
    pair = await service.login("ana@example.com", "secret")
    await service.refresh(pair.refresh_token)

    with pytest.raises(TokenRefreshError):
        await service.refresh(pair.refresh_token)


@pytest.mark.asyncio
async def test_concurrent_refresh_has_one_winner(service):
    pair = await service.login("ana@example.com", "secret")

    results = await asyncio.gather(
        service.refresh(pair.refresh_token),
        service.refresh(pair.refresh_token),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], TokenRefreshError)


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(service):
    pair = await service.login("ana@example.com", "secret")

    with pytest.raises(TokenRefreshError):
        await service.refresh(pair.access_token)


@pytest.mark.asyncio
async def test_refresh_rejects_unregistered_token(service, parts):
    token = parts.issuer.create_token(1, TokenType.REFRESH)

    with pytest.raises(TokenRefreshError):
        await service.refresh(token)


@pytest.mark.asyncio
async def test_refresh_rejects_owner_mismatch(service, parts):
    token = parts.issuer.create_token(1, TokenType.REFRESH)
    await parts.registry.register(token, 2)

    with pytest.raises(TokenRefreshError):
        await service.refresh(token)


@pytest.mark.asyncio
async def test_refresh_rejects_deactivated_user(service, parts, user):
    pair = await service.login("ana@example.com", "secret")
    user.is_active = False

    with pytest.raises(TokenRefreshError):
        await service.refresh(pair.refresh_token)


@pytest.mark.asyncio
async def test_refresh_rejects_deleted_user(service, parts):
    pair = await service.login("ana@example.com", "secret")
    parts.users.get_by_id.return_value = None

    with pytest.raises(TokenRefreshError):
        await service.refresh(pair.refresh_token)


@pytest.mark.asyncio
async def test_refresh_database_error_is_generic_401(service, parts):
    pair = await service.login("ana@example.com", "secret")
    parts.users.get_by_id.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    with pytest.raises(TokenRefreshError) as exc_info:
        await service.refresh(pair.refresh_token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid refresh token"


@pytest.mark.asyncio
async def test_refresh_registry_error_is_generic_401(service, parts):
    pair = await service.login("ana@example.com", "secret")
    parts.registry.resolve = AsyncMock(side_effect=RedisConnectionError("down"))

    with pytest.raises(TokenRefreshError) as exc_info:
        await service.refresh(pair.refresh_token)

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_refresh_timeout_is_generic_401(service, parts):
    async def slow(user_id):
        await asyncio.sleep(5)

    pair = await service.login("ana@example.com", "secret")
    parts.users.get_by_id.side_effect = slow
    service._timeout = 0.01

    with pytest.raises(TokenRefreshError):
        await service.refresh(pair.refresh_token)


@pytest.mark.asyncio
async def test_logout_revokes_and_is_idempotent(service, parts):
    pair = await service.login("ana@example.com", "secret")

    await service.logout(pair.refresh_token)
    await service.logout(pair.refresh_token)
    await service.logout("never-issued")

    assert await parts.registry.resolve(pair.refresh_token) is None


@pytest.mark.asyncio
async def test_logout_survives_store_outage(parts, issuer):
    registry = AsyncMock()
    registry.revoke.side_effect = RedisConnectionError("down")
    service = AuthService(parts.users, parts.verifier, issuer, registry, parts.resolver)

    await service.logout("some-token")

    registry.revoke.assert_awaited_once_with("some-token")


@pytest.mark.asyncio
async def test_get_permissions_sorted(service):
    assert await service.get_permissions(1) == ["roles.read", "users.read"]


@pytest.mark.asyncio
async def test_get_identity_missing_user(service, parts):
    parts.users.get_by_id.return_value = None

    with pytest.raises(UnauthenticatedError):
        await service.get_identity(1)
