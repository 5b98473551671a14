# Deploy Secrets - Secret Operations
#
# Environment-scoped store/get/list/delete on top of the Vault Store.
# Each call is one locked read-decrypt-modify-reencrypt-write cycle.
# Values are encrypted individually before the container is encrypted again.

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..config import DEFAULT_ENVIRONMENT, SecretsSettings
from ..core import EventSeverity, EventType, get_audit_logger
from ..exceptions import NotFoundError
from .encryption import EncryptionService
from .keyfile import KeyManager
from .locking import VaultLock
from .models import (
    SECRET_TYPE_ENCRYPTED,
    EnvironmentSecretInfo,
    SecretInfo,
    SecretRecord,
    utc_timestamp,
)
from .store import VaultStore

logger = logging.getLogger(__name__)


def _require_name(value: str, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{what} must be a non-empty string")
    return value


class SecretsVault:
    """
    Handle on one secrets directory.

    Security:
    - Each value encrypted with the key file (per-secret layer)
    - Whole vault encrypted again on save (container layer)
    - Listing never exposes values, plaintext or encrypted
    - Audit logging for every access (names only, never values)

    The handle is passed explicitly to every caller (CLI, template
    processor, setup flow); there is no module-level vault state.
    """

    def __init__(
        self,
        secrets_dir: Union[str, Path],
        key_manager: Optional[KeyManager] = None,
        store: Optional[VaultStore] = None,
        lock: Optional[VaultLock] = None,
    ):
        layout = SecretsSettings(secrets_dir=Path(secrets_dir))
        self.secrets_dir = layout.secrets_dir
        self.key_manager = key_manager or KeyManager(layout.key_path)
        self.store = store or VaultStore(layout.vault_path, self.key_manager)
        self.lock = lock or VaultLock(layout.lock_path)
        self.logger = get_audit_logger()

    @classmethod
    def from_settings(cls, settings: SecretsSettings) -> "SecretsVault":
        return cls(settings.secrets_dir)

    def store_secret(self, name: str, value: str, environment: str = DEFAULT_ENVIRONMENT) -> None:
        """
        Encrypt and store a secret, silently replacing any previous value.

        Args:
            name: Secret name, unique within the environment
            value: Plaintext value
            environment: Namespace (default: "default")
        """
        _require_name(name, "Secret name")
        _require_name(environment, "Environment")
        if not isinstance(value, str):
            raise ValueError("Secret value must be a string")

        logger.debug("Storing secret: %s for environment: %s", name, environment)

        # Fail fast on a missing key before creating the lock file
        key = self.key_manager.load_key()

        with self.lock.exclusive():
            content = self.store.load()
            content.setdefault(environment, {})[name] = SecretRecord(
                value=EncryptionService.encrypt_text(value, key),
                created=utc_timestamp(),
                type=SECRET_TYPE_ENCRYPTED,
            )
            self.store.save(content)

        logger.info("Secret '%s' stored for environment '%s'", name, environment)
        self.logger.log_event(
            event_type=EventType.SECRET_STORED,
            severity=EventSeverity.INFO,
            message=f"Secret stored: {name}",
            details={"name": name, "environment": environment},
        )

    def get_secret(self, name: str, environment: str = DEFAULT_ENVIRONMENT) -> str:
        """
        Retrieve and decrypt a secret.

        Raises:
            NotFoundError: No such secret in this environment
            MissingKeyError: Key file absent
            VaultCorruptionError: Vault unreadable
            DecryptionError: The stored value does not decrypt with this key
        """
        _require_name(name, "Secret name")
        _require_name(environment, "Environment")

        logger.debug("Retrieving secret: %s from environment: %s", name, environment)
        key = self.key_manager.load_key()

        with self.lock.shared():
            content = self.store.load()

        record = content.get(environment, {}).get(name)
        if record is None:
            self.logger.log_event(
                event_type=EventType.SECRET_NOT_FOUND,
                severity=EventSeverity.WARNING,
                message=f"Secret not found: {name}",
                details={"name": name, "environment": environment},
            )
            raise NotFoundError(name, environment)

        plaintext = EncryptionService.decrypt_text(record.value, key)

        self.logger.log_event(
            event_type=EventType.SECRET_ACCESSED,
            severity=EventSeverity.INFO,
            message=f"Secret accessed: {name}",
            details={"name": name, "environment": environment},
        )
        return plaintext

    def list_secrets(
        self, environment: Optional[str] = None
    ) -> Union[List[SecretInfo], List[EnvironmentSecretInfo]]:
        """
        List secret metadata (never values).

        Args:
            environment: Restrict to one environment. When omitted, rows
                from every environment are returned with the environment
                as the leading field.

        Returns:
            Rows sorted by (environment,) name.
        """
        with self.lock.shared():
            content = self.store.load()

        if environment is not None:
            secrets = content.get(environment, {})
            return [
                SecretInfo(name, record.created, record.type)
                for name, record in sorted(secrets.items())
            ]

        return [
            EnvironmentSecretInfo(env_name, name, record.created, record.type)
            for env_name, secrets in sorted(content.items())
            for name, record in sorted(secrets.items())
        ]

    def list_environments(self) -> List[str]:
        """Environment names that currently hold at least one secret."""
        with self.lock.shared():
            content = self.store.load()
        return sorted(env for env, secrets in content.items() if secrets)

    def delete_secret(self, name: str, environment: str = DEFAULT_ENVIRONMENT) -> bool:
        """
        Delete a secret. Deleting an absent secret is not an error.

        Returns:
            True if a secret was removed, False if there was nothing to remove
            (the vault file is left untouched in that case).
        """
        _require_name(name, "Secret name")
        _require_name(environment, "Environment")

        self.key_manager.load_key()

        with self.lock.exclusive():
            content = self.store.load()
            secrets = content.get(environment)
            if not secrets or name not in secrets:
                logger.info("Secret '%s' not present in environment '%s'; nothing to delete",
                            name, environment)
                return False

            del secrets[name]
            if not secrets:
                del content[environment]
            self.store.save(content)

        logger.warning("Secret '%s' deleted from environment '%s'", name, environment)
        self.logger.log_event(
            event_type=EventType.SECRET_DELETED,
            severity=EventSeverity.INFO,
            message=f"Secret deleted: {name}",
            details={"name": name, "environment": environment},
        )
        return True
