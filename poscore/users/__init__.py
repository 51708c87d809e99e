"""
Users Module

Provides the user model, its role assignments and the user repository.
"""

from .models import User, UserRole
from .repository import UserRepository

__all__ = [
    "User",
    "UserRepository",
    "UserRole",
]
