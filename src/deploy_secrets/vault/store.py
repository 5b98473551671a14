# Deploy Secrets - Vault Store
#
# Persists the encrypted vault container. The file holds one Fernet token
# whose plaintext is the JSON vault document:
#
#   { "<environment>": { "<secret name>": {"value", "created", "type"} } }
#
# An absent file is an empty vault. Anything else that fails to decrypt or
# validate is corruption and is never reported as "empty".

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional, Union

from pydantic import ValidationError

from ..core import EventSeverity, EventType, log_security_event
from ..exceptions import DecryptionError, VaultCorruptionError
from .encryption import EncryptionService
from .keyfile import KeyManager
from .models import VAULT_ADAPTER, VaultContent

logger = logging.getLogger(__name__)

VAULT_FILE_MODE = 0o600


class VaultStore:
    """Loads and atomically saves the encrypted vault file."""

    def __init__(self, vault_path: Union[str, Path], key_manager: KeyManager):
        self.vault_path = Path(vault_path)
        self.key_manager = key_manager

    def exists(self) -> bool:
        return self.vault_path.is_file()

    def load(self) -> VaultContent:
        """
        Decrypt and validate the vault.

        Returns:
            Mapping of environment -> secret name -> SecretRecord.
            Empty dict if the vault file does not exist yet.

        Raises:
            MissingKeyError: Key file absent (checked before touching the vault)
            VaultCorruptionError: Decryption, JSON or schema validation failed
        """
        key = self.key_manager.load_key()

        if not self.exists():
            logger.debug("Vault file %s does not exist; starting empty", self.vault_path)
            return {}

        blob = self.vault_path.read_bytes()
        if not blob.strip():
            self._corrupted("vault file is empty (truncated)")

        try:
            plaintext = EncryptionService.decrypt(blob, key)
        except DecryptionError as e:
            self._corrupted("container could not be decrypted", e)

        try:
            return VAULT_ADAPTER.validate_json(plaintext)
        except ValidationError as e:
            self._corrupted(f"content failed schema validation ({e.error_count()} errors)", e)

    def save(self, content: VaultContent) -> None:
        """
        Serialize, encrypt and atomically replace the vault file.

        The new content is written to a temp file in the same directory,
        fsynced and renamed over the old file, so a crash leaves either the
        old or the new vault, never a partial one.
        """
        key = self.key_manager.load_key()
        document = self._to_document(content)
        plaintext = json.dumps(document, sort_keys=True, separators=(",", ":")).encode("utf-8")
        token = EncryptionService.encrypt(plaintext, key)

        tmp_path = self.vault_path.with_name(f".{self.vault_path.name}.{os.getpid()}.tmp")
        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, VAULT_FILE_MODE)
            with os.fdopen(fd, "wb") as f:
                f.write(token)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, VAULT_FILE_MODE)
            os.replace(tmp_path, self.vault_path)
        except Exception:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        logger.debug("Vault saved: %s (%d environments)", self.vault_path, len(document))

    @staticmethod
    def _to_document(content: VaultContent) -> Dict[str, Dict[str, Dict[str, Any]]]:
        # Round-trip through the adapter so invalid in-memory content never reaches disk
        validated = VAULT_ADAPTER.validate_python(content)
        return VAULT_ADAPTER.dump_python(validated, mode="json")

    def _corrupted(self, reason: str, cause: Optional[Exception] = None) -> NoReturn:
        logger.error("Vault %s is corrupted: %s", self.vault_path, reason)
        log_security_event(
            EventType.VAULT_CORRUPTED,
            EventSeverity.CRITICAL,
            f"Vault corrupted: {reason}",
            details={"vault_path": str(self.vault_path)},
        )
        raise VaultCorruptionError(
            f"Vault file {self.vault_path} is corrupted: {reason}. Restore it from a backup."
        ) from cause
