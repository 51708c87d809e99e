"""
Middleware Package

This package contains middleware components for the POS Core API.
"""

from poscore.middleware.request_logging import RequestLoggingMiddleware

__all__ = ['RequestLoggingMiddleware']
