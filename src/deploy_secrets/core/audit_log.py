# Deploy Secrets - Audit Logging
#
# Append-only audit trail for every security-relevant vault event.
# Events are structured JSON lines written through structlog into a daily
# file under the audit directory. Secret values are never part of an event.

import logging
import os
import socket
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

from ..config import DEFAULT_AUDIT_DIR

AUDIT_LOGGER_NAME = "deploy_secrets.audit"

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    # Key Manager
    KEY_GENERATED = "key.generated"
    KEY_EXISTS = "key.exists"

    # Secret Operations
    SECRET_STORED = "secret.stored"
    SECRET_ACCESSED = "secret.accessed"
    SECRET_DELETED = "secret.deleted"
    SECRET_NOT_FOUND = "secret.not_found"

    # Vault Store
    VAULT_CORRUPTED = "vault.corrupted"

    # Template Processor
    CONFIG_PROCESSED = "config.processed"
    PLACEHOLDER_UNRESOLVED = "config.placeholder.unresolved"

    # Backup / Restore
    BACKUP_CREATED = "backup.created"
    BACKUP_RESTORED = "backup.restored"

    # System Events
    SYSTEM_INIT = "system.init"
    ENVIRONMENT_SETUP = "environment.setup"
    PRIVILEGE_DENIED = "privilege.denied"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity
    - WARNING: Degraded but non-fatal (unresolved placeholder, key exists)
    - ALERT: Operation refused or destructive action taken (restore)
    - CRITICAL: Data integrity problem (corruption)
    """
    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Features:
    - Structured JSON logging
    - Automatic timestamp and event ID
    - OS user and host context capture
    - One file per day: audit_YYYY-MM-DD.log
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: $DEPLOY_SECRETS_AUDIT_DIR)
        """
        if log_dir is None:
            log_dir = Path(os.environ.get("DEPLOY_SECRETS_AUDIT_DIR", DEFAULT_AUDIT_DIR))
        self.log_dir = Path(log_dir)
        self.log_file: Optional[Path] = None

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        self._setup_file_handler()

        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    def _setup_file_handler(self):
        """Attach a daily file handler to the audit logger, replacing any previous one."""
        audit_stdlib = logging.getLogger(AUDIT_LOGGER_NAME)
        audit_stdlib.setLevel(logging.INFO)
        audit_stdlib.propagate = False

        for handler in list(audit_stdlib.handlers):
            audit_stdlib.removeHandler(handler)
            handler.close()

        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            logger.warning("Audit log directory %s unavailable (%s); audit events go to stderr",
                           self.log_dir, e)
            audit_stdlib.addHandler(logging.StreamHandler(sys.stderr))
            return

        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting
        audit_stdlib.addHandler(file_handler)
        self.log_file = log_file

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a vault event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secret values)
            user_context: Caller context (defaults to OS user and hostname)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info("vault_event", **event_data)

        return event_id

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, uid)."""
        context = {
            "os_user": os.getenv("USER") or os.getenv("USERNAME"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }
        if hasattr(os, "geteuid"):
            context["euid"] = os.geteuid()
        return context


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Replace the global audit logger with one writing to ``log_dir``."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging vault events.

    Usage:
        log_security_event(
            EventType.SECRET_STORED,
            EventSeverity.INFO,
            "Secret stored",
            details={"name": "DB_PASSWORD", "environment": "production"}
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
