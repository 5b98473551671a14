"""Root privilege check for commands that touch the system secrets directory."""

import os

from ..exceptions import PrivilegeError
from .audit_log import EventSeverity, EventType, log_security_event


def is_privileged() -> bool:
    """True when running with an effective uid of 0 (POSIX only)."""
    if not hasattr(os, "geteuid"):
        return False
    return os.geteuid() == 0


def require_privileges(command: str, enforce: bool = True) -> None:
    """Raise PrivilegeError unless the caller is root (no-op when not enforced)."""
    if not enforce or is_privileged():
        return
    log_security_event(
        EventType.PRIVILEGE_DENIED,
        EventSeverity.ALERT,
        f"Command '{command}' refused: root privileges required",
        details={"command": command},
    )
    raise PrivilegeError(
        "This command must be run as root for proper secrets management "
        "(set DEPLOY_SECRETS_REQUIRE_ROOT=false to disable the check)"
    )
