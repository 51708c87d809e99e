"""
Service layer for writing the audit trail.

Audit writes are best-effort: a failure is logged and swallowed so it never
fails or rolls back the operation being audited, which has already been
committed by the time the entry is written.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from poscore.audit.models import AuditLog
from poscore.common.logger import get_logger

logger = get_logger(__name__)


class AuditAction(str, Enum):
    """Kinds of audited operations."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    STATUS_CHANGE = "STATUS_CHANGE"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"


@dataclass(frozen=True)
class AuditContext:
    """Who performed an operation and from where."""
    user_id: Optional[int] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None


class AuditService:
    """Appends entries to ``audit_logs``."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def record(
        self,
        action: AuditAction,
        entity: str,
        entity_id: Optional[int],
        message: str,
        context: AuditContext,
        payload: Optional[Dict[str, Any]] = None,
        branch_id: Optional[int] = None,
    ) -> bool:
        """
        Write one audit entry.

        Args:
            action: What kind of change was made
            entity: Name of the changed entity type, e.g. ``User``
            entity_id: Id of the changed entity
            message: Human readable summary
            context: Acting user, client IP and user agent
            payload: JSON-serializable details of the change
            branch_id: Branch the change applies to, if any

        Returns:
            True if the entry was stored, False if writing it failed
        """
        entry = AuditLog(
            user_id=context.user_id,
            branch_id=branch_id,
            action=AuditAction(action).value,
            entity=entity,
            entity_id=entity_id,
            message=message,
            ip=context.ip,
            user_agent=context.user_agent,
            payload_json=payload,
        )
        try:
            async with self._session_factory() as session:
                session.add(entry)
                await session.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(
                f"Failed to write audit entry {action} {entity}#{entity_id}: {e}",
                exc_info=True
            )
            return False

        logger.debug(f"Audit {entry.action} {entity}#{entity_id} by user {context.user_id}")
        return True
