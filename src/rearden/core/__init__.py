"""Core domain layer for rearden.

This module contains the error types, output handling, locking and
orchestration logic for the rearden backup system.
"""

from typing import TYPE_CHECKING

from rearden.core.errors import (
    ConcurrencyError,
    ConfigurationError,
    EngineError,
    IntegrityError,
    RcloneError,
    ReardenError,
    ResticError,
    RestoreDeclinedError,
    ToolNotFoundError,
)
from rearden.core.output import (
    CollectingOutputHandler,
    DefaultOutputHandler,
    OutputHandler,
    SilentOutputHandler,
)

if TYPE_CHECKING:
    from rearden.core.orchestrator import Orchestrator
    from rearden.core.repository import RepositoryHandle
    from rearden.core.validator import Validator


def __getattr__(name: str) -> object:
    """Lazy import for classes that may cause circular imports."""
    if name == "Orchestrator":
        from rearden.core.orchestrator import Orchestrator

        return Orchestrator
    if name == "RepositoryHandle":
        from rearden.core.repository import RepositoryHandle

        return RepositoryHandle
    if name == "Validator":
        from rearden.core.validator import Validator

        return Validator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CollectingOutputHandler",
    "ConcurrencyError",
    "ConfigurationError",
    "DefaultOutputHandler",
    "EngineError",
    "IntegrityError",
    "Orchestrator",
    "OutputHandler",
    "RcloneError",
    "ReardenError",
    "RepositoryHandle",
    "ResticError",
    "RestoreDeclinedError",
    "SilentOutputHandler",
    "ToolNotFoundError",
    "Validator",
]
