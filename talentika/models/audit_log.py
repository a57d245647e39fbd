"""
Audit Log Model

FLOW OVERVIEW
- Persists admin actions (who did what to which table/record) with request metadata.
- create_log: helper to construct a new entry; caller commits.
- Query helpers: recent entries, entries for a table.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from .database import db, SerializerMixin


class AuditLog(SerializerMixin, db.Model):
    """Model for storing admin audit entries."""

    __tablename__ = 'audit_logs'

    id = Column(Integer, primary_key=True)

    # Nullable so system actions (webhooks) can be audited too
    user_id = Column(Integer, ForeignKey('users.id'), nullable=True)

    table_name = Column(String(64), nullable=False)
    operation = Column(String(64), nullable=False)
    record_id = Column(String(64), nullable=True)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    accessed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_audit_logs_table_time', 'table_name', 'accessed_at'),
    )

    def __repr__(self):
        return f'<AuditLog {self.operation} {self.table_name}:{self.record_id}>'

    @classmethod
    def create_log(cls, operation, table_name, record_id=None, user_id=None,
                   ip_address=None, user_agent=None):
        """Create a new audit log entry."""
        log_entry = cls(
            user_id=user_id,
            table_name=table_name,
            operation=operation,
            record_id=str(record_id) if record_id is not None else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.session.add(log_entry)
        return log_entry

    @classmethod
    def get_recent(cls, limit=100, table_name=None):
        query = cls.query
        if table_name:
            query = query.filter_by(table_name=table_name)
        return query.order_by(cls.accessed_at.desc()).limit(limit).all()
