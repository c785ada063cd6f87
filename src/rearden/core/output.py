"""Output handling for rearden operations.

This module provides abstractions for handling diagnostics and engine output,
allowing for flexible output processing (console plus session log, silent,
collecting for tests).
"""

import logging
from typing import Any, Protocol

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": SUCCESS,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class OutputHandler(Protocol):
    """Protocol for handling output from rearden operations.

    Implementations can direct output to the console and session log, or
    discard or collect it.
    """

    def on_log(self, level: str, message: str, **kwargs: Any) -> None:
        """Handle a diagnostic message.

        Args:
            level: Log level (debug, info, success, warning, error)
            message: Log message
            kwargs: Additional log context
        """
        ...

    def on_stdout(self, line: str) -> None:
        """Handle a line of engine output.

        Args:
            line: Output line
        """
        ...


class DefaultOutputHandler:
    """Default output handler: diagnostics via the ``rearden`` logger, engine output verbatim."""

    def __init__(self) -> None:
        # Lazy import to avoid circular dependency
        from rearden.rich_utils import console

        self._console = console
        self._logger = logging.getLogger("rearden")
        self._transcript = logging.getLogger("rearden.transcript")

    def on_log(self, level: str, message: str, **kwargs: Any) -> None:
        """Log a diagnostic at the matching level."""
        self._logger.log(LEVELS.get(level, logging.INFO), message)

    def on_stdout(self, line: str) -> None:
        """Print an engine line to the console and record it in the transcript."""
        cleaned_line = line.rstrip("\r\n")
        self._console.print(cleaned_line, markup=False, highlight=False)
        self._transcript.info(cleaned_line)


class SilentOutputHandler:
    """Output handler that discards all output. Useful for testing."""

    def on_log(self, level: str, message: str, **kwargs: Any) -> None:
        """Discard log messages."""

    def on_stdout(self, line: str) -> None:
        """Discard engine output."""


class CollectingOutputHandler:
    """Output handler that collects all output for later inspection.

    Useful for testing and programmatic access to command output.
    """

    def __init__(self) -> None:
        self.log_messages: list[tuple[str, str]] = []
        self.stdout_lines: list[str] = []

    def on_log(self, level: str, message: str, **kwargs: Any) -> None:
        """Collect log messages."""
        self.log_messages.append((level, message))

    def on_stdout(self, line: str) -> None:
        """Collect engine output."""
        self.stdout_lines.append(line.rstrip("\r\n"))

    def messages(self, level: str | None = None) -> list[str]:
        """Return collected messages, optionally filtered by level."""
        return [message for lvl, message in self.log_messages if level is None or lvl == level]

    def clear(self) -> None:
        """Clear all collected output."""
        self.log_messages.clear()
        self.stdout_lines.clear()
