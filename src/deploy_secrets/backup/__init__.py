"""Deploy Secrets - Backup and restore of the secrets directory."""

from .backup_manager import BackupManager, RestoreResult

__all__ = ["BackupManager", "RestoreResult"]
