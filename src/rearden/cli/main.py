"""Main CLI group for rearden.

This module provides the top-level CLI group, the shared options, and the
pipeline every repository verb runs through: resolve configuration, select
the repository mode, take the lock, open the session log, then dispatch.
It is the only place that turns errors into exit statuses.
"""

import signal
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType
from typing import Any

import click
from rich.traceback import install

from rearden.config import DEFAULT_INIT_FILE, MAX_VERBOSITY, BackupConfig, ensure_config_structure
from rearden.core.errors import (
    ConcurrencyError,
    ConfigurationError,
    EngineError,
    IntegrityError,
    ReardenError,
    RestoreDeclinedError,
    ToolNotFoundError,
)
from rearden.core.lock import ExecutionLock
from rearden.core.logs import LogSession, configure_console_logging
from rearden.core.orchestrator import Orchestrator
from rearden.core.output import DefaultOutputHandler, OutputHandler
from rearden.core.repository import RepositoryHandle, ensure_local_repository, select_repository
from rearden.core.validator import resolve_config
from rearden.rich_utils import output_config_table

# Install rich traceback handler
install(suppress=[click])

USAGE_EXIT_CODE = 2
INTERRUPTED_EXIT_CODE = 130

# Checked in order; the first matching class wins
EXIT_CODES: list[tuple[type[ReardenError], int]] = [
    (RestoreDeclinedError, 0),
    (ConfigurationError, 3),
    (ToolNotFoundError, 4),
    (ConcurrencyError, 5),
    (EngineError, 6),
    (IntegrityError, 7),
]

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGHUP)

Routine = Callable[[Orchestrator], object]


class ReardenContext:
    """Context object passed to all CLI commands.

    Attributes:
        init_file: Path to the init file
        profile: Profile selected on the command line, if any
        dry_run: Whether dry-run was requested
        verbose: Verbosity level (0-3)
    """

    def __init__(self, init_file: Path, profile: str | None = None, dry_run: bool = False, verbose: int = 0) -> None:
        self.init_file = init_file
        self.profile = profile
        self.dry_run = dry_run
        self.verbose = min(verbose, MAX_VERBOSITY)


pass_context: Any = click.make_pass_decorator(ReardenContext)


def exit_code_for(error: ReardenError) -> int:
    for error_class, code in EXIT_CODES:
        if isinstance(error, error_class):
            return code
    return 1


def create_orchestrator(cfg: BackupConfig, repository: RepositoryHandle, log_file: Path | None) -> Orchestrator:
    """Factory for the orchestrator used by every repository verb."""
    return Orchestrator(cfg, repository, log_file=log_file)


@contextmanager
def termination_signals() -> Generator[None]:
    """Turn SIGTERM and SIGHUP into SystemExit so cleanup handlers run."""

    def _raise_exit(signum: int, frame: FrameType | None) -> None:
        raise SystemExit(128 + signum)

    previous = {signum: signal.signal(signum, _raise_exit) for signum in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def _report(error: ReardenError, output: OutputHandler) -> int:
    code = exit_code_for(error)
    if isinstance(error, RestoreDeclinedError):
        output.on_log("warning", error.message)
    elif isinstance(error, IntegrityError):
        output.on_log("error", f"{error}\nRun 'rearden-backup verify' again after investigating the repository.")
    else:
        output.on_log("error", str(error))
    return code


def execute(ctx: ReardenContext, command: str, routine: Routine) -> int:
    """
    Run ``routine`` through the full pipeline.

    Args:
        ctx: CLI context with the global options
        command: Verb being dispatched, used for requirements and messages
        routine: Operation to run against the orchestrator

    Returns:
        int: Process exit status
    """
    configure_console_logging(ctx.verbose)
    output = DefaultOutputHandler()

    try:
        with termination_signals():
            cfg = resolve_config(
                ctx.init_file, profile=ctx.profile, dry_run=ctx.dry_run, verbose=ctx.verbose, output=output
            )
            cfg, repository = select_repository(cfg, output=output)
            ensure_config_structure(cfg, output=output)

            with ExecutionLock(cfg.lock_file, output=output), LogSession(cfg.logs_dir, cfg.max_log_files) as session:
                try:
                    output_config_table(cfg, repository, session.path)
                    ensure_local_repository(repository, dry_run=cfg.dry_run, output=output)
                    orchestrator = create_orchestrator(cfg, repository, session.path)
                    orchestrator.check_requirements(command)
                    if cfg.dry_run:
                        output.on_log("warning", "Running in DRY-RUN mode. No changes will be made.")
                    routine(orchestrator)
                except ReardenError as e:
                    return _report(e, output)
                output.on_log("success", f"Command {command} completed successfully")
                return 0
    except ReardenError as e:
        return _report(e, output)
    except KeyboardInterrupt:
        output.on_log("error", "Interrupted, lock released.")
        return INTERRUPTED_EXIT_CODE


def run_command(ctx: ReardenContext, command: str, routine: Routine) -> None:
    """Execute ``routine`` and exit with its status when it fails."""
    code = execute(ctx, command, routine)
    if code:
        raise SystemExit(code)


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--init-file",
    "-c",
    envvar="REARDEN_INIT_FILE",
    default=DEFAULT_INIT_FILE,
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Init file defining config_dir and the base settings",
)
@click.option("--profile", "-p", envvar="REARDEN_PROFILE", default=None, help="Profile to use [default: default]")
@click.option("--dry-run", "-d", envvar="REARDEN_DRY_RUN", is_flag=True, help="Show what would be done")
@click.option("--verbose", "-v", envvar="REARDEN_VERBOSE", count=True, help="Increase verbosity (up to -vvv)")
@click.version_option(package_name="rearden-backup")
@click.pass_context
def cli(ctx: click.Context, init_file: Path, profile: str | None, dry_run: bool, verbose: int) -> None:
    """rearden-backup - restic backups synchronized with rclone.

    \b
      init      - Initialize the restic repository
      backup    - Back up, apply retention, then verify
      restore   - Restore [PATH] [SNAPSHOT] (defaults: / latest)
      push      - Upload the config directory to the remote
      pull      - Download the config directory from the remote
      list      - List snapshots
      verify    - Check repository integrity
      stats     - Show repository statistics
      export    - Write backup-info.txt
      template  - Print an example init file
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(USAGE_EXIT_CODE)
    ctx.obj = ReardenContext(init_file=init_file, profile=profile, dry_run=dry_run, verbose=verbose)


# Import and register commands (must be after cli definition to avoid circular imports)
from rearden.cli.commands import register_commands  # noqa: E402

register_commands(cli)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
