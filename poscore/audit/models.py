"""
SQLAlchemy ORM model for the audit trail.
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from poscore.database.base import ModelBase, utcnow


class AuditLog(ModelBase):
    """
    One row per mutating operation.

    ``user_id`` is the acting user, not the entity being changed; it is
    cleared if that user is ever removed so the trail survives.
    """
    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    branch_id = Column(Integer, ForeignKey('branches.id', ondelete='SET NULL'), nullable=True)
    action = Column(String(50), nullable=False)
    entity = Column(String(100), nullable=False)
    entity_id = Column(Integer, nullable=True)
    message = Column(Text, nullable=False)
    ip = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    payload_json = Column(JSON().with_variant(JSONB(), 'postgresql'), nullable=True)

    # Indexes
    __table_args__ = (
        Index('idx_audit_logs_user_id', user_id),
        Index('idx_audit_logs_branch_id', branch_id),
        Index('idx_audit_logs_action', action),
        Index('idx_audit_logs_entity', entity),
        Index('idx_audit_logs_created_at', created_at),
    )

    def __repr__(self):
        return (f"<AuditLog(id={self.id}, action='{self.action}', "
                f"entity='{self.entity}', entity_id={self.entity_id})>")
