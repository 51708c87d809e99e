"""
Roles Module

Provides roles, the permission catalogue and role grants.
"""

from .models import Permission, Role, RolePermission
from .repository import RoleRepository

__all__ = [
    "Permission",
    "Role",
    "RolePermission",
    "RoleRepository",
]
