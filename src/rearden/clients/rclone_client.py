"""Class-based rclone client for rearden.

Only `rclone sync` is wrapped. Under dry-run the sync still runs with
rclone's own `--dry-run` so the transfer is previewed without mutation.
"""

from pathlib import Path

from rearden.clients.base import EngineClient, format_command
from rearden.config import BackupConfig
from rearden.core.errors import RcloneError
from rearden.core.output import OutputHandler


def remote_path(remote: str, profile: str) -> str:
    """
    Join a profile name onto an rclone remote.

    Args:
        remote (str): rclone remote such as ``remote:backup`` or ``remote:``
        profile (str): profile name used as the remote sub-directory

    Returns:
        str: remote location for the profile
    """
    if remote.endswith(":"):
        return f"{remote}{profile}"
    return f"{remote.rstrip('/')}/{profile}"


class RcloneClient(EngineClient):
    """Thin wrapper around ``rclone sync``."""

    error_class = RcloneError
    display_name = "rclone"

    def __init__(
        self,
        executable_path: str = "rclone",
        output_handler: OutputHandler | None = None,
        config_path: Path | None = None,
        verbose: int = 0,
    ) -> None:
        super().__init__(executable_path, output_handler)
        self.config_path = config_path
        self.verbose = verbose

    def version(self) -> str:
        result = self._run_command([self.executable_path, "--version"])
        return result.stdout.strip().splitlines()[0] if result.stdout.strip() else "rclone (unknown version)"

    def sync(
        self,
        source: str,
        destination: str,
        excludes: list[str] | None = None,
        dry_run: bool = False,
    ) -> list[str]:
        """Make ``destination`` identical to ``source``.

        Under dry-run the command still runs, with rclone's own ``--dry-run``,
        so the transfer is previewed without changing either side.

        Args:
            source: Local path or remote location to copy from
            destination: Local path or remote location to copy to
            excludes: Filter patterns passed as ``--exclude``
            dry_run: Preview the transfer only

        Raises:
            RcloneError: If the sync fails

        Returns:
            list[str]: The argument vector that was executed
        """
        cmd = [self.executable_path, "sync"]
        if self.verbose > 0:
            cmd.append("-" + "v" * min(self.verbose, 2))
        else:
            cmd.append("-P")
        if self.config_path is not None:
            cmd.extend(["--config", self.config_path.as_posix()])
        for pattern in excludes or []:
            cmd.extend(["--exclude", pattern])
        cmd.extend([source, destination])
        if dry_run:
            cmd.append("--dry-run")
            self.output.on_log("info", f"DRY-RUN: Previewing sync with: {format_command(cmd)}")
        else:
            self.output.on_log("info", f"Executing: {format_command(cmd)}")
        self._run_streaming_command(cmd)
        return cmd


def create_rclone_client(cfg: BackupConfig, output_handler: OutputHandler | None = None) -> RcloneClient:
    """Factory function to create an RcloneClient from configuration."""
    return RcloneClient(
        cfg.rclone_executable,
        output_handler=output_handler,
        config_path=cfg.rclone_config_path,
        verbose=cfg.verbose,
    )
