"""
Tests for the replace-set assignment writes in the repositories.
"""

import pytest
from sqlalchemy.exc import IntegrityError


@pytest.mark.asyncio
async def test_replace_roles_leaves_exactly_the_new_set(data):
    user = await data.user(email="set@example.com")
    r1 = await data.role("r1")
    r2 = await data.role("r2")
    r3 = await data.role("r3")

    await data.users.replace_roles(user.id, [r1.id])
    await data.users.replace_roles(user.id, [r2.id, r3.id])

    loaded = await data.users.get_by_id(user.id, with_assignments=True)
    assert {ur.role_id for ur in loaded.user_roles} == {r2.id, r3.id}


@pytest.mark.asyncio
async def test_failed_replace_keeps_previous_roles(data):
    user = await data.user(email="atomic@example.com")
    r1 = await data.role("a1")
    r2 = await data.role("a2")
    await data.users.replace_roles(user.id, [r1.id])

    # The duplicate pair violates the primary key after the delete ran
    with pytest.raises(IntegrityError):
        await data.users.replace_roles(user.id, [r2.id, r2.id])

    loaded = await data.users.get_by_id(user.id, with_assignments=True)
    assert {ur.role_id for ur in loaded.user_roles} == {r1.id}


@pytest.mark.asyncio
async def test_failed_replace_keeps_previous_permissions(data):
    role = await data.role("perm-atomic", ["p.one"])
    ids = await data.permissions("p.two")

    with pytest.raises(IntegrityError):
        await data.roles.replace_permissions(role.id, [ids["p.two"], ids["p.two"]])

    loaded = await data.roles.get_by_id(role.id, with_permissions=True)
    assert [rp.permission.key for rp in loaded.role_permissions] == ["p.one"]


@pytest.mark.asyncio
async def test_replace_branches_sets_default_flag(data):
    user = await data.user(email="branchset@example.com")
    b1 = await data.branch("B1")
    b2 = await data.branch("B2")

    await data.users.replace_branches(user.id, [(b1.id, True), (b2.id, False)])
    await data.users.replace_branches(user.id, [(b2.id, True)])

    loaded = await data.users.get_by_id(user.id, with_assignments=True)
    assert [(ub.branch_id, ub.is_default) for ub in loaded.user_branches] == [(b2.id, True)]


@pytest.mark.asyncio
async def test_permission_keys_for_user(data):
    a = await data.role("ka", ["k.x", "k.y"])
    b = await data.role("kb", ["k.y", "k.z"])
    user = await data.user(email="keys@example.com", roles=[a, b])
    loner = await data.user(email="loner@example.com")

    assert await data.roles.get_permission_keys_for_user(user.id) == {"k.x", "k.y", "k.z"}
    assert await data.roles.get_permission_keys_for_user(loner.id) == set()
    assert await data.roles.get_permission_keys_for_user(424242) == set()


@pytest.mark.asyncio
async def test_ensure_permissions_is_idempotent(data):
    first = await data.roles.ensure_permissions({"e.one": "One"})
    second = await data.roles.ensure_permissions({"e.one": "One", "e.two": "Two"})

    assert len(first) == 1
    assert sorted(p.key for p in second) == ["e.one", "e.two"]
