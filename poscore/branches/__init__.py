"""
Branches Module

Provides the branch, warehouse and location models and branch lookups.
"""

from .models import Branch, Location, UserBranch, Warehouse
from .repository import BranchRepository

__all__ = [
    "Branch",
    "BranchRepository",
    "Location",
    "UserBranch",
    "Warehouse",
]
