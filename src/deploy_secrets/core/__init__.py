# Core module provides shared functionality across Deploy Secrets modules:
# - Audit logging
# - Privilege checks

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
    log_security_event,
)
from .privileges import is_privileged, require_privileges

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "configure_audit_logger",
    "get_audit_logger",
    "log_security_event",
    # Privileges
    "is_privileged",
    "require_privileges",
]
