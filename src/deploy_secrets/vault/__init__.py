# Vault Module - Encrypted, environment-scoped secret storage
#
# Key file -> Fernet encryption of each value and of the whole container
# Atomic saves under an advisory lock

from .encryption import EncryptionService
from .keyfile import KeyManager
from .locking import VaultLock
from .models import EnvironmentSecretInfo, SecretInfo, SecretRecord
from .store import VaultStore
from .vault_manager import SecretsVault

__all__ = [
    "EncryptionService",
    "EnvironmentSecretInfo",
    "KeyManager",
    "SecretInfo",
    "SecretRecord",
    "SecretsVault",
    "VaultLock",
    "VaultStore",
]
