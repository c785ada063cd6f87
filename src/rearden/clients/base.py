"""Shared subprocess plumbing for the external engine clients.

Commands are always argument vectors, never shell strings. Every
state-changing call announces the exact invocation, and under dry-run stops
there.
"""

import shlex
import shutil
import subprocess as sp
from abc import ABC, abstractmethod
from collections.abc import Mapping

from rearden.core.errors import EngineError, ToolNotFoundError
from rearden.core.output import DefaultOutputHandler, OutputHandler


def format_command(cmd: list[str]) -> str:
    """Render an argument vector the way a shell would need it quoted."""
    return shlex.join(cmd)


class EngineClient(ABC):
    """Base class for clients wrapping an external engine executable.

    Attributes:
        executable_path: Path or name of the engine executable
        output: Output handler for diagnostics and engine output
    """

    error_class: type[EngineError] = EngineError
    display_name = "engine"

    def __init__(self, executable_path: str, output_handler: OutputHandler | None = None) -> None:
        self.executable_path = executable_path
        self.output = output_handler or DefaultOutputHandler()

    def is_installed(self) -> bool:
        """Check whether the executable can be found."""
        return shutil.which(self.executable_path) is not None

    def _handle_exit_code(self, returncode: int, cmd: list[str], stderr: str = "") -> None:
        """Raise the client's error class for a non-zero exit code.

        Raises:
            EngineError: If the exit code is not 0
        """
        if returncode == 0:
            return
        raise self.error_class(
            message=f"{self.display_name} command failed with exit code {returncode}",
            exit_code=returncode,
            command=cmd,
            stderr=stderr,
        )

    def _announce(self, cmd: list[str], dry_run: bool) -> None:
        if dry_run:
            self.output.on_log("info", f"DRY-RUN: Would execute: {format_command(cmd)}")
        else:
            self.output.on_log("info", f"Executing: {format_command(cmd)}")

    def _run_command(self, cmd: list[str], env: Mapping[str, str] | None = None) -> sp.CompletedProcess[str]:
        """Run a command, capturing its output.

        Raises:
            ToolNotFoundError: If the executable is missing
            EngineError: If the command fails
        """
        try:
            result = sp.run(cmd, check=False, capture_output=True, text=True, env=env)  # noqa: S603
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} is not installed. Please install it.", tools=[cmd[0]]) from e
        self._handle_exit_code(result.returncode, cmd, result.stderr)
        return result

    def _run_streaming_command(self, cmd: list[str], env: Mapping[str, str] | None = None) -> None:
        """Run a command, forwarding its combined output line by line.

        Raises:
            ToolNotFoundError: If the executable is missing
            EngineError: If the command fails
        """
        try:
            proc = sp.Popen(cmd, stdout=sp.PIPE, stderr=sp.STDOUT, text=True, env=env)  # noqa: S603
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} is not installed. Please install it.", tools=[cmd[0]]) from e

        # Not `with proc:`, whose __exit__ waits for the child while unwinding.
        try:
            if proc.stdout:
                for line in proc.stdout:
                    self.output.on_stdout(line)
        finally:
            if proc.stdout:
                proc.stdout.close()
        returncode = proc.wait()
        self._handle_exit_code(returncode, cmd)

    def _probe(self, cmd: list[str], env: Mapping[str, str] | None = None) -> bool:
        """Run a command silently and report whether it succeeded."""
        try:
            result = sp.run(cmd, check=False, capture_output=True, text=True, env=env)  # noqa: S603
        except FileNotFoundError:
            return False
        return result.returncode == 0

    @abstractmethod
    def version(self) -> str:
        """Return the first line of the engine's version output."""
