"""
Database Module

This module provides database configuration and the declarative base for
the POS Core models.
"""

from poscore.database.base import Base, ModelBase, TimestampMixin, metadata, utcnow

__all__ = ['Base', 'ModelBase', 'TimestampMixin', 'metadata', 'utcnow']
