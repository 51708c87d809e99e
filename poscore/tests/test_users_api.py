"""
HTTP tests for user management.
"""

import pytest
from sqlalchemy import select

from conftest import bearer, login
from poscore.audit.models import AuditLog


async def audit_entries(session_factory, entity="User"):
    async with session_factory() as session:
        result = await session.execute(
            select(AuditLog).where(AuditLog.entity == entity).order_by(AuditLog.id)
        )
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_create_user(client, admin_headers, session_factory):
    response = await client.post(
        "/users",
        json={"name": "Ana Pérez", "username": "ana", "email": "ana@example.com", "password": "s3cret-pass"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    user = response.json()["data"]
    assert user["username"] == "ana"
    assert user["isActive"] is True
    assert user["roles"] == []
    assert "password" not in user and "passwordHash" not in user

    # The new user can log in with the password they were given
    await login(client, "ana", "s3cret-pass")

    entries = await audit_entries(session_factory)
    created = [e for e in entries if e.action == "CREATE"]
    assert len(created) == 1
    assert created[0].entity_id == user["id"]
    assert created[0].user_id is not None
    assert "password" not in str(created[0].payload_json)


@pytest.mark.asyncio
async def test_create_user_conflicts(client, admin_headers, data):
    await data.user(email="taken@example.com", username="taken")

    by_email = await client.post(
        "/users",
        json={"name": "X", "email": "taken@example.com", "password": "long-enough"},
        headers=admin_headers,
    )
    by_username = await client.post(
        "/users",
        json={"name": "X", "username": "taken", "password": "long-enough"},
        headers=admin_headers,
    )

    assert by_email.status_code == 409
    assert by_email.json()["details"]["field"] == "email"
    assert by_username.status_code == 409
    assert by_username.json()["details"]["field"] == "username"


@pytest.mark.asyncio
async def test_create_user_validation(client, admin_headers):
    response = await client.post(
        "/users",
        json={"name": "", "email": "not-an-email", "password": "short"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    fields = {e["field"] for e in response.json()["details"]["errors"]}
    assert {"name", "email", "password"} <= fields


@pytest.mark.asyncio
async def test_list_users_paginates(client, admin_headers, data):
    for i in range(3):
        await data.user(email=f"user{i}@example.com")

    response = await client.get("/users", params={"page": 2, "limit": 2}, headers=admin_headers)

    assert response.status_code == 200
    body = response.json()
    # root user from the fixture plus three
    assert body["meta"] == {"page": 2, "limit": 2, "total": 4}
    assert len(body["data"]) == 2


@pytest.mark.asyncio
async def test_list_users_rejects_bad_page(client, admin_headers):
    response = await client.get("/users", params={"page": 0}, headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_user(client, admin_headers, data):
    user = await data.user(email="get@example.com", name="Getter")

    found = await client.get(f"/users/{user.id}", headers=admin_headers)
    missing = await client.get("/users/9999", headers=admin_headers)

    assert found.status_code == 200
    assert found.json()["data"]["name"] == "Getter"
    assert missing.status_code == 404
    assert missing.json()["message"] == "User with id 9999 not found"


@pytest.mark.asyncio
async def test_update_user_partial(client, admin_headers, data, session_factory):
    user = await data.user(email="old@example.com", username="old", name="Old Name")

    response = await client.put(f"/users/{user.id}", json={"name": "New Name"}, headers=admin_headers)

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["name"] == "New Name"
    assert updated["email"] == "old@example.com"
    assert updated["username"] == "old"

    entry = (await audit_entries(session_factory))[-1]
    assert entry.action == "UPDATE"
    assert entry.payload_json["previous"]["name"] == "Old Name"
    assert entry.payload_json["updated"] == {"name": "New Name"}


@pytest.mark.asyncio
async def test_update_user_keeping_own_email_is_not_a_conflict(client, admin_headers, data):
    user = await data.user(email="same@example.com")

    response = await client.put(
        f"/users/{user.id}", json={"email": "same@example.com", "name": "Same"}, headers=admin_headers
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_user_conflict_and_missing(client, admin_headers, data):
    await data.user(email="first@example.com")
    second = await data.user(email="second@example.com")

    conflict = await client.put(f"/users/{second.id}", json={"email": "first@example.com"}, headers=admin_headers)
    missing = await client.put("/users/9999", json={"name": "Nobody"}, headers=admin_headers)

    assert conflict.status_code == 409
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_change_status_blocks_login(client, admin_headers, data, session_factory):
    user = await data.user(email="status@example.com")

    response = await client.patch(f"/users/{user.id}/status", json={"isActive": False}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False
    login_attempt = await client.post(
        "/auth/login", json={"identifier": "status@example.com", "password": "correct-horse"}
    )
    assert login_attempt.status_code == 401

    entry = (await audit_entries(session_factory))[-1]
    assert entry.action == "STATUS_CHANGE"
    assert entry.payload_json == {"isActive": False}


@pytest.mark.asyncio
async def test_change_status_missing_user(client, admin_headers):
    response = await client.patch("/users/9999/status", json={"isActive": True}, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_assign_roles_replaces_set(client, admin_headers, data, session_factory):
    user = await data.user(email="roles@example.com")
    first = await data.role("first")
    second = await data.role("second")
    third = await data.role("third")

    await client.put(f"/users/{user.id}/roles", json={"roleIds": [first.id]}, headers=admin_headers)
    response = await client.put(
        f"/users/{user.id}/roles",
        json={"roleIds": [second.id, third.id, second.id]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert sorted(r["name"] for r in response.json()["data"]["roles"]) == ["second", "third"]

    entry = (await audit_entries(session_factory))[-1]
    assert entry.action == "PERMISSION_CHANGE"
    assert entry.payload_json["roleIds"] == [second.id, third.id]


@pytest.mark.asyncio
async def test_assign_unknown_roles_changes_nothing(client, admin_headers, data):
    user = await data.user(email="keep@example.com")
    role = await data.role("kept")
    await data.users.replace_roles(user.id, [role.id])

    response = await client.put(
        f"/users/{user.id}/roles", json={"roleIds": [role.id, 998, 999]}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["details"]["missingIds"] == [998, 999]
    current = await client.get(f"/users/{user.id}", headers=admin_headers)
    assert [r["name"] for r in current.json()["data"]["roles"]] == ["kept"]


@pytest.mark.asyncio
async def test_assign_roles_requires_at_least_one(client, admin_headers, data):
    user = await data.user(email="empty@example.com")

    response = await client.put(f"/users/{user.id}/roles", json={"roleIds": []}, headers=admin_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_assign_branches(client, admin_headers, data):
    user = await data.user(email="branches@example.com")
    north = await data.branch("NORTE", "Norte")
    south = await data.branch("SUR", "Sur")

    response = await client.put(
        f"/users/{user.id}/branches",
        json={"branches": [
            {"branchId": north.id, "isDefault": True},
            {"branchId": south.id},
            {"branchId": north.id, "isDefault": False},
        ]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    branches = {b["code"]: b["isDefault"] for b in response.json()["data"]["branches"]}
    assert branches == {"NORTE": True, "SUR": False}


@pytest.mark.asyncio
async def test_assign_branches_rejects_two_defaults(client, admin_headers, data):
    user = await data.user(email="defaults@example.com")
    north = await data.branch("N2")
    south = await data.branch("S2")

    response = await client.put(
        f"/users/{user.id}/branches",
        json={"branches": [
            {"branchId": north.id, "isDefault": True},
            {"branchId": south.id, "isDefault": True},
        ]},
        headers=admin_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_assign_unknown_branch(client, admin_headers, data):
    user = await data.user(email="nobranch@example.com")

    response = await client.put(
        f"/users/{user.id}/branches", json={"branches": [{"branchId": 4242}]}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json()["details"]["missingIds"] == [4242]


@pytest.mark.asyncio
async def test_users_routes_require_token(client):
    response = await client.get("/users")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_each_route_checks_its_own_permission(client, data):
    role = await data.role("reader", ["users.read"])
    user = await data.user(email="reader@example.com", roles=[role])
    headers = bearer((await login(client, "reader@example.com"))["accessToken"])

    assert (await client.get(f"/users/{user.id}", headers=headers)).status_code == 200

    response = await client.post(
        "/users", json={"name": "X", "email": "x@example.com", "password": "long-enough"}, headers=headers
    )
    assert response.status_code == 403
    assert response.json()["details"]["permission"] == "users.create"
