"""
Permission Resolver

Computes the permission keys a user holds through their roles. The lookup
is a live query on every call, so grant and role changes take effect on the
next request.
"""

from typing import Set

from poscore.roles.repository import RoleRepository


class PermissionResolver:
    """Flattens user -> roles -> grants -> permission keys."""

    def __init__(self, roles: RoleRepository):
        self._roles = roles

    async def resolve(self, user_id: int) -> Set[str]:
        """
        Return the deduplicated permission keys of a user.

        A user without roles, or an unknown user id, yields an empty set.
        """
        return await self._roles.get_permission_keys_for_user(user_id)
