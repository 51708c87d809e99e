"""
SQLAlchemy ORM models for user accounts and their role assignments.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from poscore.database.base import ModelBase, TimestampMixin


class User(TimestampMixin, ModelBase):
    """
    A back-office account.

    Users are never hard-deleted; ``is_active`` is toggled instead. Either
    ``email`` or ``username`` may be used to log in.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    username = Column(String(100), nullable=True, unique=True)
    email = Column(String(255), nullable=True, unique=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    user_roles = relationship('UserRole', back_populates='user', order_by='UserRole.role_id')
    user_branches = relationship('UserBranch', back_populates='user', order_by='UserBranch.branch_id')

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}')>"


class UserRole(ModelBase):
    """Assignment of a role to a user."""
    __tablename__ = 'user_roles'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    role_id = Column(Integer, ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True)

    user = relationship('User', back_populates='user_roles')
    role = relationship('Role', back_populates='user_roles')
