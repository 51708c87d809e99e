"""
Shared fixtures for the POS Core tests.

Every test that needs the application gets a fresh in-memory SQLite
database with the full schema, an in-memory refresh token registry and an
httpx client talking to the app in process.
"""

from typing import Dict, Iterable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from poscore import create_app
from poscore.branches.models import Branch
from poscore.branches.repository import BranchRepository
from poscore.common.auth.password import hash_password
from poscore.common.auth.registry import InMemoryRefreshTokenRegistry
from poscore.config import Settings
from poscore.database.init_db import get_session_factory
from poscore.roles.repository import RoleRepository
from poscore.users.repository import UserRepository

TEST_PASSWORD = "correct-horse"


def make_settings(**overrides) -> Settings:
    values = dict(
        ENVIRONMENT="test",
        DATABASE_URL="sqlite+aiosqlite://",
        AUTO_DB_INIT=True,
        JWT_SECRET="access-secret-for-tests-0123456789abcdef",
        JWT_EXPIRATION="15m",
        REFRESH_TOKEN_SECRET="refresh-secret-for-tests-0123456789abcdef",
        REFRESH_TOKEN_EXPIRATION="7d",
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class DataBuilder:
    """Writes test data straight through the repositories."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.users = UserRepository(session_factory)
        self.roles = RoleRepository(session_factory)
        self.branches = BranchRepository(session_factory)

    async def permissions(self, *keys: str) -> Dict[str, int]:
        """Ensure the permissions exist and return key -> id."""
        catalogue = await self.roles.ensure_permissions({key: f"Test permission {key}" for key in keys})
        return {p.key: p.id for p in catalogue}

    async def role(self, name: str, permission_keys: Iterable[str] = ()):
        keys = list(permission_keys)
        role = await self.roles.create(name)
        if keys:
            ids = await self.permissions(*keys)
            await self.roles.replace_permissions(role.id, [ids[k] for k in keys])
        return role

    async def user(
        self,
        email: Optional[str] = None,
        username: Optional[str] = None,
        password: str = TEST_PASSWORD,
        name: str = "Test User",
        is_active: bool = True,
        roles: Iterable = (),
    ):
        user = await self.users.create({
            "name": name,
            "email": email,
            "username": username,
            "password_hash": hash_password(password),
            "is_active": is_active,
        })
        role_ids = [r.id for r in roles]
        if role_ids:
            await self.users.replace_roles(user.id, role_ids)
        return user

    async def branch(self, code: str, name: Optional[str] = None):
        return await self.branches.create(Branch(name=name or f"Branch {code}", code=code))


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def registry() -> InMemoryRefreshTokenRegistry:
    return InMemoryRefreshTokenRegistry()


@pytest_asyncio.fixture
async def app(settings, registry):
    application = create_app(settings, registry=registry)
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def session_factory(app):
    return get_session_factory()


@pytest.fixture
def data(session_factory) -> DataBuilder:
    return DataBuilder(session_factory)


async def login(client: AsyncClient, identifier: str, password: str = TEST_PASSWORD) -> Dict[str, str]:
    """Log in and return the token pair; fails the test on a non-200 answer."""
    response = await client.post("/auth/login", json={"identifier": identifier, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(client, data) -> Dict[str, str]:
    """Headers for a user holding every permission the routers check."""
    from poscore.auth.guard import ROUTE_PERMISSIONS

    keys = sorted(set(ROUTE_PERMISSIONS.values()))
    role = await data.role("superuser", keys)
    await data.user(email="root@example.com", name="Root", roles=[role])
    tokens = await login(client, "root@example.com")
    return bearer(tokens["accessToken"])
