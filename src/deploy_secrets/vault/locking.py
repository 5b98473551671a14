# Deploy Secrets - Advisory Vault Lock
#
# Every load-modify-save cycle runs under an exclusive flock on a sidecar
# lock file, so two pipelines storing secrets at the same time serialise
# instead of silently dropping one update. Readers take a shared lock.
# The lock is advisory: it only binds processes that use this class.

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)

LOCK_FILE_MODE = 0o600


class VaultLock:
    """
    Blocking advisory lock on ``lock_path``.

    Usage:
        lock = VaultLock(settings.lock_path)
        with lock.exclusive():
            content = store.load()
            ...
            store.save(content)
    """

    def __init__(self, lock_path: Union[str, Path]):
        self.lock_path = Path(lock_path)

    @contextmanager
    def _held(self, operation: int) -> Iterator[None]:
        fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, LOCK_FILE_MODE)
        try:
            # Blocks until the other holder releases; there is no timeout
            fcntl.flock(fd, operation)
            logger.debug("Acquired %s lock on %s",
                         "exclusive" if operation == fcntl.LOCK_EX else "shared",
                         self.lock_path)
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def exclusive(self):
        """Context manager holding an exclusive (writer) lock."""
        return self._held(fcntl.LOCK_EX)

    def shared(self):
        """Context manager holding a shared (reader) lock."""
        return self._held(fcntl.LOCK_SH)
