"""
Tests for the seed script.
"""

import pytest

from conftest import login
from poscore.auth.guard import PERMISSION_DESCRIPTIONS
from poscore.scripts.seed import ADMIN_EMAIL, ADMIN_PASSWORD, seed


@pytest.mark.asyncio
async def test_seed_creates_a_working_admin(client, data, session_factory):
    await seed(session_factory)

    tokens = await login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    response = await client.get("/me/permissions", headers={"Authorization": f"Bearer {tokens['accessToken']}"})

    assert response.json()["data"] == sorted(PERMISSION_DESCRIPTIONS)

    me = await client.get("/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"})
    assert [b["code"] for b in me.json()["data"]["branches"]] == ["MAIN"]


@pytest.mark.asyncio
async def test_seed_is_idempotent(data, session_factory):
    await seed(session_factory)
    await seed(session_factory)

    admin = await data.users.get_by_email(ADMIN_EMAIL)
    loaded = await data.users.get_by_id(admin.id, with_assignments=True)
    assert [ur.role.name for ur in loaded.user_roles] == ["admin"]
    assert len(await data.roles.list_permissions()) == len(PERMISSION_DESCRIPTIONS)
