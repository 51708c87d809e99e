#!/usr/bin/env python3
"""
Server runner script.

This script starts the FastAPI server with the appropriate configuration.
"""

import os
import sys

import uvicorn

from poscore.common.logger import app_logger
from poscore.config import get_settings

logger = app_logger.getChild("scripts.run_server")


def main():
    """Run the API server."""
    try:
        host = os.getenv("HOST", "0.0.0.0")
        port = get_settings().PORT
        reload_enabled = os.getenv("RELOAD", "false").lower() == "true"

        logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

        uvicorn.run(
            "poscore.main:app",
            host=host,
            port=port,
            reload=reload_enabled,
            log_level="info"
        )

    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
