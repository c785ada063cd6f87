"""Class-based restic client for rearden.

Every method takes a RepositoryHandle, so the same client serves both the
local repository and a directly addressed remote one.
"""

from pathlib import Path

from rearden.clients.base import EngineClient
from rearden.config import BackupConfig
from rearden.core.errors import ResticError
from rearden.core.output import OutputHandler
from rearden.core.repository import RepositoryHandle


class ResticClient(EngineClient):
    """Thin wrapper around the restic command line.

    Attributes:
        executable_path: Path to the restic executable
        verbose: Verbosity level passed to state-changing commands
    """

    error_class = ResticError
    display_name = "restic"

    def __init__(
        self,
        executable_path: str = "restic",
        output_handler: OutputHandler | None = None,
        verbose: int = 0,
    ) -> None:
        super().__init__(executable_path, output_handler)
        self.verbose = verbose

    def _base(self, repo: RepositoryHandle) -> list[str]:
        return [self.executable_path, *repo.restic_args()]

    def _verbosity_args(self) -> list[str]:
        return [f"--verbose={self.verbose}"] if self.verbose > 0 else []

    def version(self) -> str:
        result = self._run_command([self.executable_path, "version"])
        return result.stdout.strip().splitlines()[0] if result.stdout.strip() else "restic (unknown version)"

    # Read-only Operations

    def is_initialized(self, repo: RepositoryHandle) -> bool:
        """Probe whether the repository exists and can be opened."""
        return self._probe([*self._base(repo), "snapshots"], env=repo.env)

    def snapshots(self, repo: RepositoryHandle, latest: int | None = None) -> None:
        """Stream the snapshot listing."""
        cmd = [*self._base(repo), "snapshots"]
        if latest is not None:
            cmd.extend(["--latest", str(latest)])
        self._run_streaming_command(cmd, env=repo.env)

    def stats(self, repo: RepositoryHandle) -> None:
        """Stream repository statistics."""
        self._run_streaming_command([*self._base(repo), "stats"], env=repo.env)

    def snapshots_text(self, repo: RepositoryHandle) -> str:
        return self._run_command([*self._base(repo), "snapshots"], env=repo.env).stdout

    def stats_text(self, repo: RepositoryHandle) -> str:
        return self._run_command([*self._base(repo), "stats"], env=repo.env).stdout

    def check(self, repo: RepositoryHandle, dry_run: bool = False) -> list[str]:
        """Run an integrity check of the repository.

        Raises:
            ResticError: If the check fails
        """
        cmd = [*self._base(repo), "check"]
        self._announce(cmd, dry_run)
        if not dry_run:
            self._run_streaming_command(cmd, env=repo.env)
        return cmd

    # State-changing Operations

    def init(self, repo: RepositoryHandle, dry_run: bool = False) -> list[str]:
        """Initialize a new repository."""
        cmd = [*self._base(repo), "init"]
        self._announce(cmd, dry_run)
        if not dry_run:
            self._run_streaming_command(cmd, env=repo.env)
        return cmd

    def backup(
        self,
        repo: RepositoryHandle,
        paths: list[str],
        exclude_patterns: list[str] | None = None,
        exclude_file: Path | None = None,
        dry_run: bool = False,
    ) -> list[str]:
        """Create a snapshot of ``paths``.

        Args:
            repo: Target repository
            paths: Directories to back up
            exclude_patterns: Glob patterns passed as ``--exclude``
            exclude_file: File of patterns passed as ``--exclude-file``
            dry_run: Only announce the command

        Returns:
            list[str]: The argument vector that was (or would be) executed
        """
        cmd = [*self._base(repo), "backup", *paths]
        for pattern in exclude_patterns or []:
            cmd.extend(["--exclude", pattern])
        if exclude_file is not None:
            cmd.append(f"--exclude-file={exclude_file.as_posix()}")
        cmd.extend(self._verbosity_args())

        self._announce(cmd, dry_run)
        if not dry_run:
            self._run_streaming_command(cmd, env=repo.env)
        return cmd

    def forget(self, repo: RepositoryHandle, keep_within_days: int, dry_run: bool = False) -> list[str]:
        """Forget and prune snapshots older than ``keep_within_days``."""
        cmd = [*self._base(repo), "forget", "--keep-within", f"{keep_within_days}d", "--prune"]
        self._announce(cmd, dry_run)
        if not dry_run:
            self._run_streaming_command(cmd, env=repo.env)
        return cmd

    def restore(self, repo: RepositoryHandle, snapshot: str, target: str, dry_run: bool = False) -> list[str]:
        """Restore ``snapshot`` into ``target``."""
        cmd = [*self._base(repo), "restore", snapshot, "--target", target, *self._verbosity_args()]
        self._announce(cmd, dry_run)
        if not dry_run:
            self._run_streaming_command(cmd, env=repo.env)
        return cmd


def create_restic_client(cfg: BackupConfig, output_handler: OutputHandler | None = None) -> ResticClient:
    """Factory function to create a ResticClient from configuration."""
    return ResticClient(cfg.restic_executable, output_handler=output_handler, verbose=cfg.verbose)
