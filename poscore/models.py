"""
Model registry.

Importing this module registers every ORM model on the shared metadata so
relationships resolve and ``create_all`` / alembic see the full schema.
"""

from poscore.audit.models import AuditLog
from poscore.branches.models import Branch, Location, UserBranch, Warehouse
from poscore.roles.models import Permission, Role, RolePermission
from poscore.users.models import User, UserRole

__all__ = [
    'AuditLog',
    'Branch',
    'Location',
    'Permission',
    'Role',
    'RolePermission',
    'User',
    'UserBranch',
    'UserRole',
    'Warehouse',
]
