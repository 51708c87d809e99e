"""
SQLAlchemy ORM models for roles and the permission catalogue.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from poscore.database.base import ModelBase


class Role(ModelBase):
    """A named bundle of permissions."""
    __tablename__ = 'roles'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    role_permissions = relationship(
        'RolePermission', back_populates='role', order_by='RolePermission.permission_id'
    )
    user_roles = relationship('UserRole', back_populates='role')

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class Permission(ModelBase):
    """
    A single capability, identified by a dotted key such as ``users.create``.

    Permissions are reference data written by the seed script.
    """
    __tablename__ = 'permissions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Permission(id={self.id}, key='{self.key}')>"


class RolePermission(ModelBase):
    """Grant of a permission to a role."""
    __tablename__ = 'role_permissions'

    role_id = Column(Integer, ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)
    permission_id = Column(Integer, ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True)

    role = relationship('Role', back_populates='role_permissions')
    permission = relationship('Permission')
