"""Core Orchestrator for rearden.

This module provides the Orchestrator class holding every operation routine.
Each routine composes one or more engine invocations around the resolved
configuration and repository handle; clients are injected for testability.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from rearden.clients.rclone_client import RcloneClient, create_rclone_client, remote_path
from rearden.clients.restic_client import ResticClient, create_restic_client
from rearden.config import BackupConfig
from rearden.core.errors import IntegrityError, ResticError, RestoreDeclinedError, ToolNotFoundError
from rearden.core.output import DefaultOutputHandler, OutputHandler
from rearden.core.repository import RepositoryHandle
from rearden.rich_utils import confirm_restore

DEFAULT_EXCLUDES = ["**/mount/**", "**/.cache/restic/**"]
SYNC_COMMANDS = frozenset({"push", "pull"})
NO_ENGINE_COMMANDS = frozenset({"template"})
LATEST_SNAPSHOT_SUMMARY = 5
# restic exits 1 when check finds problems; other codes are access failures
CHECK_FAILED_EXIT_CODE = 1


class Orchestrator:
    """Main orchestrator for rearden operations.

    Example:
        >>> cfg, handle = select_repository(resolve_config(Path("init.yaml")))
        >>> orchestrator = Orchestrator(cfg, handle)
        >>> orchestrator.backup()
    """

    def __init__(
        self,
        config: BackupConfig,
        repository: RepositoryHandle,
        restic: ResticClient | None = None,
        rclone: RcloneClient | None = None,
        output_handler: OutputHandler | None = None,
        confirm: Callable[[str], bool] | None = None,
        log_file: Path | None = None,
    ) -> None:
        """Initialize Orchestrator with optional dependencies.

        Args:
            config: Effective configuration (already passed through mode selection)
            repository: Repository handle for the active mode
            restic: Snapshot engine client (default: built from config)
            rclone: Sync engine client (default: built from config)
            output_handler: Handler for output messages (default: DefaultOutputHandler)
            confirm: Restore confirmation prompt (default: interactive console prompt)
            log_file: Active session log, excluded from push/pull
        """
        self.config = config
        self.repository = repository
        self.output = output_handler or DefaultOutputHandler()
        self.restic = restic or create_restic_client(config, self.output)
        self.rclone = rclone or create_rclone_client(config, self.output)
        self.confirm = confirm or confirm_restore
        self.log_file = log_file

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    # Requirements

    def check_requirements(self, command: str) -> None:
        """Make sure the engines ``command`` needs are installed.

        Args:
            command: Verb about to be dispatched

        Raises:
            ToolNotFoundError: Listing every missing engine
        """
        if command in NO_ENGINE_COMMANDS:
            return
        clients = [self.rclone] if command in SYNC_COMMANDS else [self.restic]

        missing = [client.executable_path for client in clients if not client.is_installed()]
        if missing:
            raise ToolNotFoundError(
                f"{', '.join(missing)} is not installed. Please install it.",
                tools=missing,
            )
        for client in clients:
            self.output.on_log("debug", f"Found {client.version()}")

    # Repository Workflows

    def init_repository(self) -> None:
        """Initialize the repository unless it already exists.

        Raises:
            ResticError: If initialization fails
        """
        self.output.on_log("info", f"Checking if restic repository is initialized at {self.repository.location}...")
        if self.restic.is_initialized(self.repository):
            self.output.on_log("info", "Restic repository already initialized.")
            return

        self.output.on_log("info", f"Initializing restic repository at {self.repository.location}")
        self.restic.init(self.repository, dry_run=self.dry_run)
        if not self.dry_run:
            self.output.on_log("success", "Repository initialized successfully.")

    def backup(self) -> None:
        """Snapshot the configured sources, then apply retention and verify.

        Any failure aborts the chain before the later steps run.

        Raises:
            ResticError: If the backup or retention step fails
            IntegrityError: If verification fails
        """
        if not self.config.enable_backup:
            self.output.on_log("warning", "Backup step is disabled.")
            return

        self.output.on_log("info", f"Starting backup to repository: {self.repository.location}")
        exclude_file: Path | None = None
        if self.config.exclude_file.is_file():
            exclude_file = self.config.exclude_file
            self.output.on_log("info", f"Using exclude file: {exclude_file}")

        self.restic.backup(
            self.repository,
            self.config.backup_directories,
            exclude_patterns=[*DEFAULT_EXCLUDES, *self.config.exclude_patterns],
            exclude_file=exclude_file,
            dry_run=self.dry_run,
        )
        if not self.dry_run:
            self.output.on_log("success", "Backup completed successfully.")

        self.apply_retention_policy()
        if self.config.verify_backup:
            self.verify()

    def apply_retention_policy(self) -> None:
        """Prune snapshots older than the retention window.

        Raises:
            ResticError: If the prune fails
        """
        days = self.config.retention_days
        if days <= 0:
            self.output.on_log("info", "Retention policy disabled (retention_days=0).")
            return

        self.output.on_log("info", f"Applying retention policy: keeping snapshots within the last {days} days")
        self.restic.forget(self.repository, keep_within_days=days, dry_run=self.dry_run)
        if not self.dry_run:
            self.output.on_log("success", "Retention policy applied successfully.")

    def verify(self) -> None:
        """Check repository integrity.

        Raises:
            IntegrityError: If the check finds problems, signalling possible corruption
            ResticError: If restic cannot open or lock the repository
        """
        self.output.on_log("info", "Verifying backup integrity...")
        try:
            self.restic.check(self.repository, dry_run=self.dry_run)
        except ResticError as e:
            if e.exit_code != CHECK_FAILED_EXIT_CODE:
                raise
            raise IntegrityError(
                "Backup verification failed! The repository may be corrupted.",
                repository=self.repository.location,
                cause=e,
            ) from e

        if self.dry_run:
            self.output.on_log("info", "DRY-RUN: Skipping backup verification.")
        else:
            self.output.on_log("success", "Backup verification completed successfully.")

    def restore(self, target: str = "/", snapshot: str = "latest") -> None:
        """Restore a snapshot into ``target``.

        Args:
            target: Directory to restore into
            snapshot: Snapshot id, or ``latest``

        Raises:
            RestoreDeclinedError: If the operator declines the prompt
            ResticError: If the restore fails
        """
        if not self.config.enable_restore:
            self.output.on_log("warning", "Restore step is disabled.")
            return

        self.output.on_log("info", f"Restoring snapshot {snapshot} from {self.repository.location} to {target}")
        if not self.dry_run and self.config.confirm_restore and not self.confirm(target):
            raise RestoreDeclinedError("Restore cancelled by user.")

        self.restic.restore(self.repository, snapshot=snapshot, target=target, dry_run=self.dry_run)
        if not self.dry_run:
            self.output.on_log("success", f"Restore completed successfully to {target}.")

    # Sync Workflows

    def _sync_source(self) -> Path:
        if self.config.sync_scope == "repository":
            return Path(self.repository.location)
        return self.config.config_dir

    def _sync_excludes(self) -> list[str]:
        if self.config.sync_scope == "repository":
            return []
        excludes = ["locks/**"]
        if self.log_file is not None:
            excludes.insert(0, f"logs/{self.log_file.name}")
        return excludes

    def _sync_allowed(self, step: str, enabled: bool) -> bool:
        if enabled:
            return True
        if self.repository.is_direct:
            self.output.on_log("warning", f"{step} step is disabled: the repository is addressed directly.")
        else:
            self.output.on_log("warning", f"{step} step is disabled.")
        return False

    def push(self) -> None:
        """Upload the local side to the remote.

        Raises:
            RcloneError: If the sync fails
        """
        if not self._sync_allowed("Push", self.config.enable_push):
            return

        source = self._sync_source()
        destination = remote_path(self.config.rclone_remote, self.config.profile)
        self.output.on_log("info", f"Pushing {source} to remote {destination}")
        self.rclone.sync(source.as_posix(), destination, excludes=self._sync_excludes(), dry_run=self.dry_run)
        if not self.dry_run:
            self.output.on_log("success", f"Upload of {source} to remote completed successfully.")

    def pull(self) -> None:
        """Download the remote side over the local one.

        Raises:
            RcloneError: If the sync fails
        """
        if not self._sync_allowed("Pull", self.config.enable_pull):
            return

        source = remote_path(self.config.rclone_remote, self.config.profile)
        destination = self._sync_source()
        self.output.on_log("info", f"Pulling remote {source} to {destination}")
        self.rclone.sync(source, destination.as_posix(), excludes=self._sync_excludes(), dry_run=self.dry_run)
        if not self.dry_run:
            self.output.on_log("success", f"Download of {destination} from remote completed successfully.")

    # Read-only Workflows

    def list_snapshots(self) -> None:
        self.output.on_log("info", "Listing snapshots in repository:")
        self.restic.snapshots(self.repository)

    def show_stats(self) -> None:
        self.output.on_log("info", "Generating backup statistics:")
        self.restic.stats(self.repository)
        self.output.on_log("info", "Summary of latest snapshots:")
        self.restic.snapshots(self.repository, latest=LATEST_SNAPSHOT_SUMMARY)

    def render_info(self, now: datetime | None = None) -> str:
        """Build the backup-info report text."""
        timestamp = (now or datetime.now()).strftime("%a %b %d %H:%M:%S %Y")
        lines = [
            "===== Backup Information =====",
            f"Date: {timestamp}",
            f"Profile: {self.config.profile}",
            f"Repository: {self.repository.location}",
            "",
            "===== Snapshots =====",
            self.restic.snapshots_text(self.repository).rstrip("\n"),
            "",
            "===== Statistics =====",
            self.restic.stats_text(self.repository).rstrip("\n"),
        ]
        return "\n".join(lines) + "\n"

    def export_info(self, now: datetime | None = None) -> Path:
        """Write the backup-info report into the config directory.

        Under dry-run the report is shown instead of written.

        Returns:
            Path: The report file (not created under dry-run)
        """
        export_file = self.config.export_file
        self.output.on_log("info", f"Exporting backup information to {export_file}")
        report = self.render_info(now)

        if self.dry_run:
            self.output.on_log("info", f"DRY-RUN: Would write backup information to {export_file}")
            for line in report.splitlines():
                self.output.on_stdout(line)
            return export_file

        export_file.write_text(report, encoding="utf-8")
        self.output.on_log("success", f"Exported backup information to {export_file}")
        return export_file
