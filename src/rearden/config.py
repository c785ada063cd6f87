"""Configuration management for rearden using dynaconf and Pydantic.

Settings are layered from lowest to highest precedence:

1. Built-in defaults on ``BackupConfig``
2. The init file (YAML, located via ``--init-file`` / ``REARDEN_INIT_FILE``)
3. The active profile fragment at ``<config_dir>/profiles/<profile>.yaml``
4. ``REARDEN_*`` environment variables
5. Command line overrides (profile, dry-run, verbosity)
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from dynaconf import Dynaconf  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from rearden.core.errors import ConfigurationError
from rearden.core.output import DefaultOutputHandler, OutputHandler
from rearden.templates import SAMPLE_EXCLUDES

ENVVAR_PREFIX = "REARDEN"
DEFAULT_INIT_FILE = "init.yaml"
DEFAULT_PROFILE = "default"
MAX_VERBOSITY = 3
PROFILE_SUFFIXES = (".yaml", ".yml")
LOCK_NAME = "rearden-backup"
VALID_PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")

# Settings that fall back to the engines' own environment variables when unset
BACKEND_ENV_FALLBACKS = {
    "restic_repository": "RESTIC_REPOSITORY",
    "restic_password": "RESTIC_PASSWORD",
    "restic_password_file": "RESTIC_PASSWORD_FILE",
    "rclone_config": "RCLONE_CONFIG",
}


class BackupConfig(BaseModel):
    """Effective configuration for a single invocation.

    Built once by the resolver and passed to every routine. The model is
    frozen; derived copies are made with ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)

    config_dir: Path
    init_file: Path
    profile: str = DEFAULT_PROFILE
    backup_directories: list[str] = Field(default_factory=list)
    local_backup_repo: Path | None = None
    rclone_remote: str = "remote:backup"
    rclone_config: Path | None = None
    restic_repository: str = ""
    restic_password: str | None = Field(default=None, repr=False)
    restic_password_file: Path | None = None
    retention_days: int = Field(default=0, ge=0)
    verify_backup: bool = True
    enable_backup: bool = True
    enable_restore: bool = True
    enable_push: bool = True
    enable_pull: bool = True
    confirm_restore: bool = True
    exclude_patterns: list[str] = Field(default_factory=list)
    sync_scope: Literal["config", "repository"] = "config"
    dry_run: bool = False
    verbose: int = 0
    max_log_files: int = Field(default=10, ge=1)
    restic_executable: str = "restic"
    rclone_executable: str = "rclone"

    @field_validator("backup_directories", "exclude_patterns", mode="before")
    @classmethod
    def split_word_list(cls, v: Any) -> list[str]:
        """Accept either a YAML list or a whitespace-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            return v.split()
        return [str(item) for item in v]

    @field_validator("backup_directories")
    @classmethod
    def expand_home(cls, v: list[str]) -> list[str]:
        """Expand ``~`` in source directories; engines are run without a shell."""
        return [os.path.expanduser(directory) for directory in v]

    @field_validator("verbose", mode="before")
    @classmethod
    def clamp_verbosity(cls, v: Any) -> int:
        return max(0, min(int(v or 0), MAX_VERBOSITY))

    @field_validator("restic_repository", mode="before")
    @classmethod
    def strip_repository(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @property
    def direct_mode(self) -> bool:
        """Whether the snapshot engine targets a remote repository directly."""
        return bool(self.restic_repository)

    @property
    def locks_dir(self) -> Path:
        return self.config_dir / "locks"

    @property
    def logs_dir(self) -> Path:
        return self.config_dir / "logs"

    @property
    def backups_dir(self) -> Path:
        return self.config_dir / "backups"

    @property
    def profiles_dir(self) -> Path:
        return self.config_dir / "profiles"

    @property
    def lock_file(self) -> Path:
        return self.locks_dir / f"{LOCK_NAME}.lock"

    @property
    def exclude_file(self) -> Path:
        return self.config_dir / "exclude.txt"

    @property
    def export_file(self) -> Path:
        return self.config_dir / "backup-info.txt"

    @property
    def default_password_file(self) -> Path:
        return self.config_dir / "restic-password.txt"

    @property
    def rclone_config_path(self) -> Path:
        """Get the rclone config file, defaulting to one inside the config dir."""
        return self.rclone_config or self.config_dir / "rclone.conf"

    @property
    def local_backup_root(self) -> Path:
        """Get the directory holding this profile's local repository."""
        return self.local_backup_repo or self.backups_dir / self.profile

    @property
    def local_repository_path(self) -> Path:
        return self.local_backup_root / "restic"


def _load_settings(settings_files: list[Path]) -> Dynaconf:
    """Build a dynaconf settings object over the given files plus ``REARDEN_*`` env vars."""
    return Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[path.as_posix() for path in settings_files],
        environments=False,
        load_dotenv=False,
        merge_enabled=False,
    )


def _resolve_path(value: Any, base_dir: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def find_profile_file(profiles_dir: Path, profile: str) -> Path | None:
    """Return the profile fragment for ``profile`` if one exists."""
    for suffix in PROFILE_SUFFIXES:
        candidate = profiles_dir / f"{profile}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def load_config(
    init_file: Path,
    profile: str | None = None,
    dry_run: bool = False,
    verbose: int = 0,
    environ: Mapping[str, str] | None = None,
) -> BackupConfig:
    """
    Load the layered configuration into a BackupConfig.

    This only merges and type-checks settings; semantic validation (source
    directories, credentials) happens in ``rearden.core.validator``.

    Args:
        init_file: Path to the base configuration file
        profile: Profile name from the command line (overrides the init file)
        dry_run: Force dry-run mode on
        verbose: Verbosity level from the command line
        environ: Environment to read backend fallbacks from (default: os.environ)

    Raises:
        ConfigurationError: If the init file is missing, ``config_dir`` is
            undefined, or any setting has an invalid value

    Returns:
        BackupConfig: The merged configuration
    """
    env = os.environ if environ is None else environ
    init_file = init_file.expanduser()
    if not init_file.is_file():
        raise ConfigurationError(
            f"{init_file} not found. This file is required; run 'rearden-backup template' for an example.",
            config_key="init_file",
        )
    init_file = init_file.resolve()

    base_settings = _load_settings([init_file])
    raw_config_dir = base_settings.get("config_dir")
    if not raw_config_dir:
        raise ConfigurationError(f"config_dir is not defined in {init_file}.", config_key="config_dir")
    config_dir = _resolve_path(raw_config_dir, init_file.parent)

    profile_name = str(profile or base_settings.get("profile") or DEFAULT_PROFILE)
    if not VALID_PROFILE_NAME_PATTERN.match(profile_name):
        raise ConfigurationError(f"Invalid profile name: {profile_name}", config_key="profile")
    settings_files = [init_file]
    profile_file = find_profile_file(config_dir / "profiles", profile_name)
    if profile_file is not None:
        settings_files.append(profile_file)
    settings = _load_settings(settings_files)

    values: dict[str, Any] = {}
    for name in BackupConfig.model_fields:
        value = settings.get(name)
        if value is not None:
            values[name] = value
    for name, env_var in BACKEND_ENV_FALLBACKS.items():
        if not values.get(name) and env.get(env_var):
            values[name] = env[env_var]
    for name in ("local_backup_repo", "rclone_config", "restic_password_file"):
        if values.get(name):
            values[name] = _resolve_path(values[name], config_dir)

    values["config_dir"] = config_dir
    values["init_file"] = init_file
    values["profile"] = profile_name
    if dry_run:
        values["dry_run"] = True
    if verbose:
        values["verbose"] = verbose

    try:
        return BackupConfig(**values)
    except ValidationError as e:
        problems = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()]
        raise ConfigurationError("Invalid configuration values", problems=problems) from e


def ensure_config_structure(cfg: BackupConfig, output: OutputHandler | None = None) -> list[Path]:
    """
    Create the config directory layout and seed a sample exclude file.

    The directories are created even under dry-run, since the lock and the
    session log live there; the sample exclude file is not.

    Args:
        cfg: Effective configuration
        output: Output handler for the dry-run notice

    Returns:
        list[Path]: Paths that did not exist before and were created
    """
    created: list[Path] = []
    for directory in (cfg.config_dir, cfg.locks_dir, cfg.logs_dir, cfg.backups_dir, cfg.profiles_dir):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)

    if cfg.exclude_file.exists():
        return created
    if cfg.dry_run:
        output = output or DefaultOutputHandler()
        output.on_log("info", f"DRY-RUN: Would create sample exclude file: {cfg.exclude_file}")
    else:
        cfg.exclude_file.write_text(SAMPLE_EXCLUDES, encoding="utf-8")
        created.append(cfg.exclude_file)
    return created
