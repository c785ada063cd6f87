"""Execution lock for rearden.

Guarantees at most one live rearden process per config directory. The lock
is a file holding the owner's PID; a record whose process is gone is treated
as stale and replaced. This is a single-host lock: two machines sharing one
config directory are not excluded from each other.
"""

import os
from pathlib import Path
from types import TracebackType
from typing import Self

import psutil

from rearden.core.errors import ConcurrencyError
from rearden.core.output import DefaultOutputHandler, OutputHandler


def pid_is_running(pid: int) -> bool:
    """Best-effort probe for a live process with ``pid``."""
    if pid <= 0:
        return False
    try:
        return psutil.pid_exists(pid) and psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        return True


def read_lock_pid(lock_path: Path) -> int | None:
    """Return the PID stored in a lock file, or None if it is unreadable."""
    try:
        return int(lock_path.read_text(encoding="utf-8").strip())
    except (OSError, ValueError):
        return None


class ExecutionLock:
    """File-based advisory lock with stale-owner detection.

    Use as a context manager so the record is removed on every exit path:

    Example:
        >>> with ExecutionLock(Path("/srv/backup/locks/rearden-backup.lock")):
        ...     run_backup()
    """

    def __init__(self, lock_path: Path, output: OutputHandler | None = None, pid: int | None = None) -> None:
        self.lock_path = lock_path
        self.pid = pid or os.getpid()
        self.output = output or DefaultOutputHandler()
        self.acquired = False

    def acquire(self) -> None:
        """Take the lock, clearing a stale record first.

        Raises:
            ConcurrencyError: If a live process already holds the lock
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)

        if self.lock_path.exists():
            owner = read_lock_pid(self.lock_path)
            if owner is not None and owner != self.pid and pid_is_running(owner):
                raise ConcurrencyError(
                    f"Another instance is already running with PID {owner}",
                    pid=owner,
                    lock_path=self.lock_path.as_posix(),
                )
            self.output.on_log("warning", "Found stale lock file. Previous process may have crashed.")
            self.lock_path.unlink(missing_ok=True)

        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            raise ConcurrencyError(
                "Another instance acquired the lock concurrently",
                pid=read_lock_pid(self.lock_path),
                lock_path=self.lock_path.as_posix(),
            ) from e
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{self.pid}\n")

        self.acquired = True
        self.output.on_log("info", f"Created lock file with PID {self.pid}")

    def release(self) -> None:
        """Remove the lock record unconditionally."""
        if self.lock_path.exists():
            self.lock_path.unlink(missing_ok=True)
            self.output.on_log("info", "Removed lock file")
        self.acquired = False

    def __enter__(self) -> Self:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
