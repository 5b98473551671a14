"""Key Manager: creates and guards the symmetric key file.

The key is generated once at ``init`` and never rotated automatically.
Losing it makes the vault permanently unrecoverable; there is no escrow.
"""

import logging
import os
from pathlib import Path
from typing import Union

from ..core import EventSeverity, EventType, log_security_event
from ..exceptions import InvalidKeyError, MissingKeyError
from .encryption import EncryptionService

logger = logging.getLogger(__name__)

KEY_FILE_MODE = 0o600


class KeyManager:
    """Owns the key file at ``key_path``."""

    def __init__(self, key_path: Union[str, Path]):
        self.key_path = Path(key_path)

    def exists(self) -> bool:
        return self.key_path.is_file()

    def generate_key(self) -> bool:
        """
        Create the key file if it does not exist yet.

        The key is written to a temp file and hard-linked into place, so a
        key that appears concurrently is never overwritten.

        Returns:
            True if a new key was written, False if one already existed.

        Raises:
            OSError: The target directory is missing or not writable.
        """
        if self.exists():
            self._report_existing()
            return False

        key = EncryptionService.generate_key()

        tmp_path = self.key_path.with_name(f"{self.key_path.name}.{os.getpid()}.tmp")
        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(key + b"\n")
                f.flush()
                os.fsync(f.fileno())
            # umask can only narrow the mode; chmod pins it exactly
            os.chmod(tmp_path, KEY_FILE_MODE)
            os.link(tmp_path, self.key_path)
        except FileExistsError:
            self._report_existing()
            return False
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.info("Encryption key generated and secured: %s", self.key_path)
        log_security_event(
            EventType.KEY_GENERATED,
            EventSeverity.INFO,
            "Encryption key generated",
            details={"key_path": str(self.key_path)},
        )
        return True

    def _report_existing(self) -> None:
        logger.warning("Encryption key already exists: %s", self.key_path)
        log_security_event(
            EventType.KEY_EXISTS,
            EventSeverity.WARNING,
            "Key generation skipped: key file already exists",
            details={"key_path": str(self.key_path)},
        )

    def load_key(self) -> bytes:
        """
        Read the key material.

        Raises:
            MissingKeyError: The key file does not exist.
            InvalidKeyError: The file is empty or holds something else.
        """
        if not self.exists():
            raise MissingKeyError(f"Encryption key not found: {self.key_path}")

        key = self.key_path.read_bytes().strip()
        if not key:
            raise InvalidKeyError(f"Encryption key file is empty: {self.key_path}")
        # Validates format (raises InvalidKeyError)
        EncryptionService.validate_key(key)
        return key
