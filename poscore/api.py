"""
Central API router for the POS Core API.

This module collects the feature routers into one router that the
application factory mounts at the root path.
"""

import logging
from typing import Dict

from fastapi import APIRouter

from poscore.auth.router import router as auth_router
from poscore.health.router import router as health_router
from poscore.roles.router import router as roles_router
from poscore.users.router import router as users_router

# Configure logging
logger = logging.getLogger(__name__)

# Create main API router
main_router = APIRouter()

# Dictionary to track registered feature modules
registered_modules: Dict[str, APIRouter] = {}


def register_module(name: str, router: APIRouter) -> None:
    """
    Register a feature router with the main API router.

    Args:
        name: Name of the feature module
        router: FastAPI router for the module
    """
    if name in registered_modules:
        logger.warning(f"Module '{name}' already registered, skipping")
        return

    main_router.include_router(router)
    registered_modules[name] = router
    logger.debug(f"Registered module '{name}' with {len(router.routes)} routes")


register_module("health", health_router)
register_module("auth", auth_router)
register_module("users", users_router)
register_module("roles", roles_router)

__all__ = ["main_router", "register_module"]
