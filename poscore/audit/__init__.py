"""
Audit Module

Provides the audit log model and the best-effort audit writer.
"""

from .models import AuditLog
from .service import AuditAction, AuditContext, AuditService

__all__ = [
    "AuditAction",
    "AuditContext",
    "AuditLog",
    "AuditService",
]
