"""Session logging for rearden.

Every invocation writes a transcript to ``<config_dir>/logs``. Diagnostics go
through the ``rearden`` logger, which renders to the terminal with a
RichHandler and, while a session is open, to the session file as well.
Engine output is printed verbatim to the terminal and recorded to the same
file through the ``rearden.transcript`` logger.
"""

import logging
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Self

from rich.logging import RichHandler

from rearden.core.output import SUCCESS
from rearden.rich_utils import console

__all__ = ["SUCCESS", "LogSession", "configure_console_logging", "logger", "prune_logs", "transcript_logger"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_PREFIX = "backup-"
LOG_FILE_GLOB = "*.log"

logger = logging.getLogger("rearden")
transcript_logger = logging.getLogger("rearden.transcript")
transcript_logger.propagate = False


def configure_console_logging(verbose: int = 0) -> None:
    """
    Attach the terminal handler to the ``rearden`` logger.

    Args:
        verbose: Verbosity level; 2 and above enables debug output
    """
    for handler in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(handler)
    rich_handler = RichHandler(console=console, show_path=False, log_time_format="[%Y-%m-%d %H:%M:%S]")
    logger.addHandler(rich_handler)
    logger.setLevel(logging.DEBUG if verbose >= 2 else logging.INFO)
    logger.propagate = False


def prune_logs(log_dir: Path, max_files: int) -> list[Path]:
    """
    Delete the oldest session logs so at most ``max_files`` remain.

    Args:
        log_dir: Directory holding the session logs
        max_files: Number of logs to keep

    Returns:
        list[Path]: The removed log files, oldest first
    """
    logs = sorted(log_dir.glob(LOG_FILE_GLOB), key=lambda p: (p.stat().st_mtime, p.name))
    excess = len(logs) - max_files
    if excess <= 0:
        return []

    removed = logs[:excess]
    for log_file in removed:
        log_file.unlink(missing_ok=True)
    return removed


def session_log_name(now: datetime | None = None) -> str:
    timestamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    return f"{LOG_FILE_PREFIX}{timestamp}.log"


class LogSession:
    """A single append-only transcript of one invocation.

    Pruning of older transcripts happens before the new file is created so
    the new session never counts against its own limit.

    Example:
        >>> with LogSession(Path("/srv/backup/logs"), max_files=10) as session:
        ...     logger.info("written to %s", session.path)
    """

    def __init__(self, log_dir: Path, max_files: int, now: datetime | None = None) -> None:
        self.log_dir = log_dir
        self.max_files = max_files
        self._now = now
        self.path: Path | None = None
        self._handler: logging.FileHandler | None = None

    def open(self) -> Path:
        """Prune old transcripts, then start writing the new one.

        Returns:
            Path: The new session log file
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)
        removed = prune_logs(self.log_dir, self.max_files)

        self.path = self.log_dir / session_log_name(self._now)
        handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        self._handler = handler

        if logger.level == logging.NOTSET:
            logger.setLevel(logging.INFO)
        logger.addHandler(handler)
        transcript_logger.addHandler(handler)

        if removed:
            logger.warning("Rotating logs, removed %d oldest file(s)", len(removed))
        logger.info("Started logging to %s", self.path)
        return self.path

    def close(self) -> None:
        """Detach and close the session file handler."""
        if self._handler is None:
            return
        logger.removeHandler(self._handler)
        transcript_logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
