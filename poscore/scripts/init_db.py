#!/usr/bin/env python3
"""
Database initialization script.

Creates every table of the current models in the database named by
``DATABASE_URL``. Production databases should be migrated with alembic
instead; this is for local and throwaway databases.
"""

import asyncio
import sys

from poscore.config import get_settings
from poscore.common.logger import app_logger
from poscore.database.init_db import close_database, create_schema, initialize_database

logger = app_logger.getChild("scripts.init_db")


async def async_main():
    """Initialize the database."""
    settings = get_settings()
    await initialize_database(database_url=settings.DATABASE_URL, echo=settings.SQL_ECHO)
    try:
        await create_schema()
        logger.info("Database initialized successfully")
    finally:
        await close_database()


def main():
    try:
        asyncio.run(async_main())
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
