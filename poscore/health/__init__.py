"""
Health Module

Liveness and version endpoints.
"""

from .router import router

__all__ = ["router"]
