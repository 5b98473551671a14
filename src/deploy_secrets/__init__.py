# Deploy Secrets - Main Package
#
# Environment-scoped secrets vault for automated deployments: encrypted at
# rest, injected into configuration templates at deployment time.

__version__ = "1.0.0"
__author__ = "Deploy Secrets Team"
__description__ = "Environment-scoped secrets vault for deployment pipelines"

from .config import SecretsSettings
from .exceptions import (
    ArchiveMissingError,
    BackupError,
    DecryptionError,
    InvalidKeyError,
    MissingKeyError,
    NotFoundError,
    PrivilegeError,
    SecretsError,
    TemplateNotFoundError,
    UnresolvedPlaceholderWarning,
    UsageError,
    VaultCorruptionError,
)
from .vault import KeyManager, SecretsVault

__all__ = [
    "__version__",
    "SecretsSettings",
    "SecretsVault",
    "KeyManager",
    "SecretsError",
    "UsageError",
    "PrivilegeError",
    "MissingKeyError",
    "InvalidKeyError",
    "DecryptionError",
    "VaultCorruptionError",
    "NotFoundError",
    "BackupError",
    "ArchiveMissingError",
    "TemplateNotFoundError",
    "UnresolvedPlaceholderWarning",
]
