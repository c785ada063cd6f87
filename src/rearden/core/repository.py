"""Repository mode selection.

rearden runs in one of two mutually exclusive topologies:

- Local-Sync Mode: restic writes to a repository inside the config dir and
  rclone pushes/pulls the config dir (or just that repository) to a remote.
- Direct Mode: restic addresses a remote repository itself; push and pull
  have nothing to do and are forced off.
"""

import os
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from rearden.config import BackupConfig
from rearden.core.output import DefaultOutputHandler, OutputHandler
from rearden.lib.credentials import build_engine_env

SYNC_TOGGLES = ("push", "pull")


class RepositoryMode(StrEnum):
    LOCAL_SYNC = "local-sync"
    DIRECT = "direct"


class RepositoryHandle(BaseModel):
    """Resolved restic invocation target for the active mode.

    Attributes:
        mode: Active repository topology
        location: Repository path or remote address passed to ``restic -r``
        password_file: Password file passed to ``--password-file``, if any
        env: Environment restic runs with (carries RESTIC_PASSWORD for value credentials)
    """

    model_config = ConfigDict(frozen=True)

    mode: RepositoryMode
    location: str
    password_file: Path | None = None
    env: dict[str, str] = Field(default_factory=dict, repr=False)

    @property
    def is_direct(self) -> bool:
        return self.mode is RepositoryMode.DIRECT

    def restic_args(self) -> list[str]:
        """Global restic arguments selecting this repository."""
        args = ["-r", self.location]
        if self.password_file is not None:
            args.extend(["--password-file", self.password_file.as_posix()])
        return args


class RepositorySelection(NamedTuple):
    config: BackupConfig
    handle: RepositoryHandle


def select_repository(
    cfg: BackupConfig,
    output: OutputHandler | None = None,
    environ: Mapping[str, str] | None = None,
) -> RepositorySelection:
    """
    Decide the repository handle and which sync operations are available.

    Args:
        cfg: Validated configuration
        output: Handler for diagnostics (default: DefaultOutputHandler)
        environ: Base environment for the engine (default: os.environ)

    Returns:
        RepositorySelection: The effective configuration (push/pull forced off
            in Direct Mode) and the repository handle
    """
    out = output or DefaultOutputHandler()
    env = build_engine_env(os.environ if environ is None else environ, cfg.restic_password)

    if cfg.direct_mode:
        enabled = [name for name in SYNC_TOGGLES if getattr(cfg, f"enable_{name}")]
        if enabled:
            out.on_log(
                "warning",
                "Push/Pull operations are disabled when using a direct remote repository "
                f"(configured enabled: {', '.join(enabled)}).",
            )
        else:
            out.on_log("debug", "Push/Pull already disabled; direct remote repository in use.")
        cfg = cfg.model_copy(update={"enable_push": False, "enable_pull": False})
        out.on_log("info", f"Using direct remote repository: {cfg.restic_repository}")
        handle = RepositoryHandle(
            mode=RepositoryMode.DIRECT,
            location=cfg.restic_repository,
            password_file=cfg.restic_password_file,
            env=env,
        )
    else:
        handle = RepositoryHandle(
            mode=RepositoryMode.LOCAL_SYNC,
            location=cfg.local_repository_path.as_posix(),
            password_file=cfg.restic_password_file,
            env=env,
        )
    return RepositorySelection(cfg, handle)


def ensure_local_repository(handle: RepositoryHandle, dry_run: bool = False, output: OutputHandler | None = None) -> bool:
    """
    Create the local repository directory in Local-Sync Mode.

    Args:
        handle: Repository handle
        dry_run: Report the creation instead of performing it
        output: Handler for diagnostics (default: DefaultOutputHandler)

    Returns:
        bool: True if the directory was (or under dry-run would be) created
    """
    if handle.is_direct:
        return False

    repo_dir = Path(handle.location)
    if repo_dir.is_dir():
        return False

    out = output or DefaultOutputHandler()
    if dry_run:
        out.on_log("info", f"DRY-RUN: Would create local backup repository: {repo_dir}")
        return True

    repo_dir.mkdir(parents=True, exist_ok=True)
    out.on_log("info", f"Created local backup repository: {repo_dir}")
    return True
