#!/usr/bin/env python3
"""
Seed script.

Writes the reference data the API needs to be usable, and is safe to run
repeatedly:

1. The permission catalogue
2. An ``admin`` role granted every permission
3. A default branch
4. An administrator account (``admin@gmail.com`` / ``admin123``) holding the
   ``admin`` role and the default branch
"""

import asyncio
import sys
from typing import Dict

from poscore.auth.guard import PERMISSION_DESCRIPTIONS
from poscore.branches.models import Branch
from poscore.branches.repository import BranchRepository
from poscore.common.auth.password import hash_password
from poscore.common.logger import app_logger
from poscore.config import get_settings
from poscore.database.init_db import close_database, get_session_factory, initialize_database
from poscore.roles.repository import RoleRepository
from poscore.users.repository import UserRepository

logger = app_logger.getChild("scripts.seed")

ADMIN_ROLE = "admin"
ADMIN_EMAIL = "admin@gmail.com"
ADMIN_PASSWORD = "admin123"
DEFAULT_BRANCH_CODE = "MAIN"


async def seed(session_factory, catalogue: Dict[str, str] = PERMISSION_DESCRIPTIONS) -> None:
    """
    Seed reference data through the repositories.

    Args:
        session_factory: Async session factory bound to the target database
        catalogue: Permission key -> description
    """
    # Register every model before the first query
    import poscore.models  # noqa: F401

    roles = RoleRepository(session_factory)
    users = UserRepository(session_factory)
    branches = BranchRepository(session_factory)

    permissions = await roles.ensure_permissions(catalogue)
    logger.info(f"Permission catalogue has {len(permissions)} entries")

    role = await roles.get_by_name(ADMIN_ROLE)
    if role is None:
        role = await roles.create(ADMIN_ROLE, "Full access to every back-office operation")
        logger.info(f"Created role '{ADMIN_ROLE}'")
    await roles.replace_permissions(role.id, [p.id for p in permissions])

    branch = await branches.get_by_code(DEFAULT_BRANCH_CODE)
    if branch is None:
        branch = await branches.create(Branch(name="Main branch", code=DEFAULT_BRANCH_CODE))
        logger.info(f"Created branch '{DEFAULT_BRANCH_CODE}'")

    admin = await users.get_by_email(ADMIN_EMAIL)
    if admin is None:
        admin = await users.create({
            "name": "Admin",
            "email": ADMIN_EMAIL,
            "password_hash": hash_password(ADMIN_PASSWORD),
            "is_active": True,
        })
        await users.replace_roles(admin.id, [role.id])
        await users.replace_branches(admin.id, [(branch.id, True)])
        logger.info(f"Created user {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
    else:
        logger.info(f"User {ADMIN_EMAIL} already exists, left unchanged")


async def async_main():
    settings = get_settings()
    await initialize_database(database_url=settings.DATABASE_URL, echo=settings.SQL_ECHO)
    try:
        await seed(get_session_factory())
    finally:
        await close_database()


def main():
    try:
        asyncio.run(async_main())
    except Exception as e:
        logger.error(f"Seeding failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
