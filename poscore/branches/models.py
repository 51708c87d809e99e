"""
SQLAlchemy ORM models for the branch / warehouse / location hierarchy.

A branch owns warehouses, a warehouse owns locations, and locations can be
nested through ``parent_id`` (aisle -> shelf -> bin and so on).
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from poscore.database.base import ModelBase


class Branch(ModelBase):
    __tablename__ = 'branches'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    timezone = Column(String(50), nullable=False, default='UTC')
    is_active = Column(Boolean, nullable=False, default=True)

    warehouses = relationship('Warehouse', back_populates='branch')

    def __repr__(self):
        return f"<Branch(id={self.id}, code='{self.code}')>"


class UserBranch(ModelBase):
    """Membership of a user in a branch; at most one should be the default."""
    __tablename__ = 'user_branches'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='CASCADE'), primary_key=True)
    is_default = Column(Boolean, nullable=False, default=False)

    user = relationship('User', back_populates='user_branches')
    branch = relationship('Branch')


class Warehouse(ModelBase):
    __tablename__ = 'warehouses'

    id = Column(Integer, primary_key=True, autoincrement=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='RESTRICT'), nullable=False)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)

    branch = relationship('Branch', back_populates='warehouses')
    locations = relationship('Location', back_populates='warehouse')


class Location(ModelBase):
    __tablename__ = 'locations'

    id = Column(Integer, primary_key=True, autoincrement=True)
    warehouse_id = Column(Integer, ForeignKey('warehouses.id', ondelete='RESTRICT'), nullable=False)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    type = Column(String(50), nullable=False)
    parent_id = Column(Integer, ForeignKey('locations.id', ondelete='RESTRICT'), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    warehouse = relationship('Warehouse', back_populates='locations')
    parent = relationship('Location', remote_side=[id], back_populates='children')
    children = relationship('Location', back_populates='parent')
