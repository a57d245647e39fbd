"""
Admin Audit Trail

FLOW OVERVIEW
- audit_admin_action(operation, table_name, record_id, user_id)
  • Adds an AuditLog row with request metadata (ip, user agent) when inside a request.
  • Emits an `[AUDIT]` log line.
  • Caller commits.
"""

import logging
from flask import has_request_context, request
from ..models import AuditLog

logger = logging.getLogger(__name__)


def audit_admin_action(operation, table_name, record_id=None, user_id=None):
    """Record who did what to which record"""
    ip_address = None
    user_agent = None
    if has_request_context():
        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        user_agent = request.headers.get('User-Agent')

    entry = AuditLog.create_log(
        operation=operation,
        table_name=table_name,
        record_id=record_id,
        user_id=user_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info(f"[AUDIT] user={user_id} {operation} {table_name}:{record_id}")
    return entry
