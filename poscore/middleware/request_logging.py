"""
Request Logging Middleware

Logs one line per request with method, path, status code, duration and
client address. Query strings and headers are left out so tokens never end
up in the logs.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from poscore.common.logger import get_logger

# Setup module logger
logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log every HTTP request."""

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log its outcome.

        Args:
            request: The incoming request
            call_next: The next middleware/route handler

        Returns:
            The response from the next handler
        """
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start_time
            logger.error(
                f"{request.method} {request.url.path} failed after {duration:.3f}s, ip={client_ip}"
            )
            raise

        duration = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} status={response.status_code} "
            f"duration={duration:.3f}s ip={client_ip}"
        )
        return response
