"""Custom error types for rearden.

This module defines the hierarchy of exceptions raised by the resolver, the
lock, the engine clients and the operation routines. The CLI dispatcher is
the only place that turns them into process exit codes.
"""

from typing import override


class ReardenError(Exception):
    """Base exception for all rearden errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(ReardenError):
    """Exception raised when configuration is missing or invalid.

    Attributes:
        problems: Every violation found, so the operator can fix them in one pass
        config_key: The offending setting, when a single one is to blame
    """

    def __init__(self, message: str, problems: list[str] | None = None, config_key: str | None = None) -> None:
        super().__init__(message)
        self.problems = problems or []
        self.config_key = config_key

    @override
    def __str__(self) -> str:
        parts = [self.message]
        parts.extend(f"  - {problem}" for problem in self.problems)
        if self.config_key:
            parts.append(f"Setting: {self.config_key}")
        return "\n".join(parts)


class ToolNotFoundError(ReardenError):
    """Exception raised when a required external engine is not installed."""

    def __init__(self, message: str, tools: list[str] | None = None) -> None:
        super().__init__(message)
        self.tools = tools or []


class ConcurrencyError(ReardenError):
    """Exception raised when another live instance holds the execution lock.

    Attributes:
        pid: Process id recorded in the lock file
        lock_path: Path to the lock file
    """

    def __init__(self, message: str, pid: int | None = None, lock_path: str | None = None) -> None:
        super().__init__(message)
        self.pid = pid
        self.lock_path = lock_path

    @override
    def __str__(self) -> str:
        parts = [self.message]
        if self.lock_path:
            parts.append(f"Lock file: {self.lock_path}")
        return "\n".join(parts)


class EngineError(ReardenError):
    """Exception raised when an external engine exits with a failure status.

    Attributes:
        exit_code: The exit code returned by the engine
        command: The argument vector that was executed
        stderr: Standard error output from the command, when captured
    """

    engine = "engine"

    def __init__(
        self,
        message: str,
        exit_code: int,
        command: list[str] | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.command = command or []
        self.stderr = stderr or ""

    @override
    def __str__(self) -> str:
        parts = [self.message]
        if self.command:
            parts.append(f"Command: {' '.join(self.command)}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr.strip()}")
        return "\n".join(parts)


class ResticError(EngineError):
    """Exception raised when a restic command fails."""

    engine = "restic"


class RcloneError(EngineError):
    """Exception raised when an rclone command fails."""

    engine = "rclone"


class IntegrityError(ReardenError):
    """Exception raised when repository verification fails.

    Kept apart from EngineError because a failed check points at possible
    repository corruption rather than a failed transfer.
    """

    def __init__(self, message: str, repository: str, cause: EngineError | None = None) -> None:
        super().__init__(message)
        self.repository = repository
        self.cause = cause

    @override
    def __str__(self) -> str:
        parts = [self.message, f"Repository: {self.repository}"]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return "\n".join(parts)


class RestoreDeclinedError(ReardenError):
    """Raised when the operator declines the restore confirmation prompt."""
