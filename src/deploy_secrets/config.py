# Deploy Secrets - Runtime Configuration
#
# Paths and switches come from the process environment, optionally seeded
# from a .env file in the working directory. Real environment variables
# always win over .env entries.

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_SECRETS_DIR = "/etc/hass-secrets"
DEFAULT_CONFIG_DIR = "/opt/hass-config"
DEFAULT_BACKUP_DIR = "/var/home-assistant/backups"
DEFAULT_AUDIT_DIR = "/var/log/deploy-secrets"

VAULT_FILENAME = "vault.encrypted"
KEY_FILENAME = ".keyfile"
LOCK_FILENAME = ".vault.lock"

DEFAULT_ENVIRONMENT = "default"
SEED_ENVIRONMENTS: Tuple[str, ...] = ("development", "staging", "production")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in _TRUTHY


@dataclass
class SecretsSettings:
    """Filesystem layout and policy switches for one invocation."""

    secrets_dir: Path = Path(DEFAULT_SECRETS_DIR)
    config_dir: Path = Path(DEFAULT_CONFIG_DIR)
    backup_dir: Path = Path(DEFAULT_BACKUP_DIR)
    audit_dir: Path = Path(DEFAULT_AUDIT_DIR)
    require_root: bool = True
    environments: Tuple[str, ...] = field(default=SEED_ENVIRONMENTS)

    @property
    def vault_path(self) -> Path:
        return self.secrets_dir / VAULT_FILENAME

    @property
    def key_path(self) -> Path:
        return self.secrets_dir / KEY_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.secrets_dir / LOCK_FILENAME

    @property
    def environments_dir(self) -> Path:
        return self.config_dir / "environments"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "SecretsSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``. When given,
                no .env file is loaded.
            dotenv_path: Explicit .env file (default: ./.env)

        Returns:
            SecretsSettings
        """
        if environ is None:
            load_dotenv(dotenv_path or Path.cwd() / ".env", override=False)
            environ = os.environ

        return cls(
            secrets_dir=Path(environ.get("DEPLOY_SECRETS_DIR", DEFAULT_SECRETS_DIR)),
            config_dir=Path(environ.get("DEPLOY_SECRETS_CONFIG_DIR", DEFAULT_CONFIG_DIR)),
            backup_dir=Path(environ.get("DEPLOY_SECRETS_BACKUP_DIR", DEFAULT_BACKUP_DIR)),
            audit_dir=Path(environ.get("DEPLOY_SECRETS_AUDIT_DIR", DEFAULT_AUDIT_DIR)),
            require_root=_env_flag(environ.get("DEPLOY_SECRETS_REQUIRE_ROOT"), True),
        )
