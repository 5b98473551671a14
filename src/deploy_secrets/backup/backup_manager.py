"""Backup manager: snapshot and restore the whole secrets directory.

Each backup is a single ``secrets_backup_YYYYMMDD_HHMMSS.tar.gz`` holding the
secrets directory (vault file and key file together), permissioned 0600.

The archive therefore contains the key in recoverable form: whoever can
read a backup can read every secret in it. Backup storage needs the same
protection as the live vault.
"""

import logging
import os
import tarfile
import tempfile
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union

from ..config import LOCK_FILENAME
from ..core import EventSeverity, EventType, log_security_event
from ..exceptions import ArchiveMissingError, BackupError
from ..vault.locking import VaultLock

logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = "secrets_backup_"
ARCHIVE_SUFFIX = ".tar.gz"
SAFETY_PREFIX = "secrets_current_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

ARCHIVE_MODE = 0o600
SECRETS_DIR_MODE = 0o700
SECRET_FILE_MODE = 0o600


@dataclass
class RestoreResult:
    archive: Path
    safety_copy: Optional[Path]
    restored_files: List[str]


class BackupManager:
    """Creates, lists and restores secrets directory archives.

    Args:
        secrets_dir: Live secrets directory (vault + key).
        backup_dir: Default destination for archives.
        lock: Vault lock held while reading or overwriting the directory.
    """

    def __init__(
        self,
        secrets_dir: Union[str, Path],
        backup_dir: Union[str, Path],
        lock: Optional[VaultLock] = None,
    ):
        self._secrets_dir = Path(secrets_dir)
        self._backup_dir = Path(backup_dir)
        self._lock = lock

    def _locked(self):
        if self._lock is None or not self._secrets_dir.is_dir():
            return nullcontext()
        return self._lock.exclusive()

    # ── Create ───────────────────────────────────────────────────────

    def backup(self, destination_dir: Optional[Union[str, Path]] = None) -> Path:
        """Create a timestamped, compressed, owner-only archive.

        Args:
            destination_dir: Where to write the archive (default: backup_dir).

        Returns:
            Path of the new archive.

        Raises:
            BackupError: Secrets directory does not exist.
        """
        if not self._secrets_dir.is_dir():
            raise BackupError(f"Secrets directory not found: {self._secrets_dir}")

        destination = Path(destination_dir) if destination_dir else self._backup_dir
        destination.mkdir(parents=True, exist_ok=True)
        archive_path = self._unique_archive_path(destination, ARCHIVE_PREFIX)

        logger.info("Backing up secrets vault...")
        with self._locked():
            self._write_archive(archive_path)

        logger.info("Secrets vault backed up to: %s", archive_path)
        log_security_event(
            EventType.BACKUP_CREATED,
            EventSeverity.INFO,
            f"Secrets backup created: {archive_path.name}",
            details={
                "archive": str(archive_path),
                "size_bytes": archive_path.stat().st_size,
            },
        )
        return archive_path

    # ── List ─────────────────────────────────────────────────────────

    def list_backups(self, destination_dir: Optional[Union[str, Path]] = None) -> List[Path]:
        """Archives in ``destination_dir`` (default: backup_dir), newest first."""
        directory = Path(destination_dir) if destination_dir else self._backup_dir
        if not directory.is_dir():
            return []
        return sorted(
            directory.glob(f"{ARCHIVE_PREFIX}*{ARCHIVE_SUFFIX}"),
            key=lambda p: (p.stat().st_mtime, p.name),
            reverse=True,
        )

    # ── Restore ──────────────────────────────────────────────────────

    def restore(self, archive_path: Union[str, Path]) -> RestoreResult:
        """Extract an archive over the live secrets directory.

        A safety copy of the current directory is written to the temp
        directory first. There is no automatic rollback if extraction fails
        midway; the safety copy is there for a manual restore.

        Raises:
            ArchiveMissingError: ``archive_path`` does not exist.
            BackupError: Archive unreadable or contains unsafe members.
        """
        archive = Path(archive_path)
        if not archive.is_file():
            raise ArchiveMissingError(f"Backup file not found: {archive}")

        logger.warning("Restoring secrets vault from: %s", archive)

        try:
            with tarfile.open(archive, "r:gz") as tar:
                members = self._plan_members(tar)

                safety_copy = None
                with self._locked():
                    if self._secrets_dir.is_dir():
                        safety_copy = self._unique_archive_path(
                            Path(tempfile.gettempdir()), SAFETY_PREFIX
                        )
                        self._write_archive(safety_copy)
                        logger.warning("Current vault backed up to: %s", safety_copy)

                    self._secrets_dir.mkdir(parents=True, exist_ok=True)
                    for member in members:
                        tar.extract(member, self._secrets_dir, filter="data")
                    self._secure_tree()
        except (tarfile.TarError, EOFError, OSError) as e:
            raise BackupError(f"Failed to restore from {archive}: {e}") from e

        restored = [m.name for m in members if m.isfile()]
        logger.info("Secrets vault restored successfully")
        log_security_event(
            EventType.BACKUP_RESTORED,
            EventSeverity.ALERT,
            f"Secrets restored from {archive.name}",
            details={
                "archive": str(archive),
                "safety_copy": str(safety_copy) if safety_copy else None,
                "restored_files": restored,
            },
        )
        return RestoreResult(archive=archive, safety_copy=safety_copy, restored_files=restored)

    # ── Helpers ──────────────────────────────────────────────────────

    def _write_archive(self, archive_path: Path) -> None:
        """Write a gzip tar of the secrets directory, owner-only from creation."""
        fd = os.open(archive_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, ARCHIVE_MODE)
        try:
            with os.fdopen(fd, "wb") as raw, tarfile.open(fileobj=raw, mode="w:gz") as tar:
                tar.add(
                    self._secrets_dir,
                    arcname=self._secrets_dir.name,
                    filter=self._exclude_lock_file,
                )
        except Exception:
            archive_path.unlink(missing_ok=True)
            raise
        os.chmod(archive_path, ARCHIVE_MODE)

    @staticmethod
    def _exclude_lock_file(info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
        if PurePosixPath(info.name).name == LOCK_FILENAME:
            return None
        return info

    @staticmethod
    def _plan_members(tar: tarfile.TarFile) -> List[tarfile.TarInfo]:
        """Validate members and re-root them under the live secrets directory.

        Archives hold a single top-level directory (the secrets directory's
        name at backup time). Its contents are extracted into the live
        directory whatever that is called now.
        """
        planned = []
        root = None
        for member in tar.getmembers():
            path = PurePosixPath(member.name)
            if path.is_absolute() or ".." in path.parts:
                raise BackupError(f"Unsafe path in archive: {member.name}")
            if not (member.isfile() or member.isdir()):
                raise BackupError(f"Unsupported member type in archive: {member.name}")
            if root is None:
                root = path.parts[0]
            elif path.parts[0] != root:
                raise BackupError(f"Archive has more than one top-level entry: {member.name}")

            relative = PurePosixPath(*path.parts[1:]) if len(path.parts) > 1 else None
            if relative is None or relative.name == LOCK_FILENAME:
                continue
            member.name = str(relative)
            planned.append(member)

        if root is None:
            raise BackupError("Archive is empty")
        return planned

    def _secure_tree(self) -> None:
        os.chmod(self._secrets_dir, SECRETS_DIR_MODE)
        for path in self._secrets_dir.rglob("*"):
            os.chmod(path, SECRETS_DIR_MODE if path.is_dir() else SECRET_FILE_MODE)

    @staticmethod
    def _unique_archive_path(directory: Path, prefix: str) -> Path:
        stamp = datetime.now().strftime(TIMESTAMP_FORMAT)
        candidate = directory / f"{prefix}{stamp}{ARCHIVE_SUFFIX}"
        counter = 1
        while candidate.exists():
            candidate = directory / f"{prefix}{stamp}_{counter}{ARCHIVE_SUFFIX}"
            counter += 1
        return candidate
