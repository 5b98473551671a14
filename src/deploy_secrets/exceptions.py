"""
Deploy Secrets Exception Classes

Every fatal condition is a ``SecretsError`` subclass carrying the process
exit code the command surface reports for it.
"""

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_PRIVILEGE = 3
EXIT_MISSING_KEY = 4
EXIT_VAULT_CORRUPT = 5
EXIT_NOT_FOUND = 6
EXIT_ARCHIVE_MISSING = 7
EXIT_DECRYPTION = 8


class SecretsError(Exception):
    """Base exception for secrets vault operations"""
    exit_code = EXIT_FAILURE


class UsageError(SecretsError):
    """Raised when a command is missing a required argument"""
    exit_code = EXIT_USAGE


class PrivilegeError(SecretsError):
    """Raised when an operation requires elevated rights the caller lacks"""
    exit_code = EXIT_PRIVILEGE


class MissingKeyError(SecretsError):
    """Raised when the key file is absent for a crypto operation"""
    exit_code = EXIT_MISSING_KEY


class InvalidKeyError(MissingKeyError):
    """Raised when the key file exists but does not hold usable key material"""
    pass


class DecryptionError(SecretsError):
    """Raised on wrong key or malformed ciphertext"""
    exit_code = EXIT_DECRYPTION


class VaultCorruptionError(SecretsError):
    """Raised when the vault file cannot be decrypted or fails validation"""
    exit_code = EXIT_VAULT_CORRUPT


class NotFoundError(SecretsError):
    """Raised when a secret or environment is absent on lookup"""
    exit_code = EXIT_NOT_FOUND

    def __init__(self, name: str, environment: str):
        super().__init__(f"Secret '{name}' not found in environment '{environment}'")
        self.name = name
        self.environment = environment


class BackupError(SecretsError):
    """Raised for backup/restore failures"""
    pass


class ArchiveMissingError(BackupError):
    """Raised when the restore target archive does not exist"""
    exit_code = EXIT_ARCHIVE_MISSING


class TemplateNotFoundError(SecretsError):
    """Raised when a configuration template cannot be read"""
    pass


class UnresolvedPlaceholderWarning(UserWarning):
    """Issued when a template placeholder has no value in any provider"""
    pass
