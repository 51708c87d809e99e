"""
Main application entry point for the POS Core API.

Usage:
    - Direct: python -m poscore.main
    - ASGI server: uvicorn poscore.main:app
"""

import os

from poscore import create_app
from poscore.config import get_settings
from poscore.common.logger import app_logger

# Setup module logger
logger = app_logger.getChild("main")

# Create the FastAPI application
app = create_app()

# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = get_settings().PORT
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "poscore.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level="info"
    )
