"""Centralized validation rules for rearden.

This module provides the Validator class for checking a merged
configuration before any engine is invoked, plus ``resolve_config`` which
chains loading and validation into the Configuration Resolver step.
"""

import os
from collections.abc import Mapping
from pathlib import Path

from rearden.config import VALID_PROFILE_NAME_PATTERN, BackupConfig, find_profile_file, load_config
from rearden.core.errors import ConfigurationError
from rearden.core.output import DefaultOutputHandler, OutputHandler
from rearden.lib.credentials import CredentialSource, insecure_permissions_warning, resolve_credential

# Validation constants
MAX_PROFILE_NAME_LENGTH = 64

# Direct repository backends and the variable each one usually needs
REMOTE_BACKEND_HINTS: list[tuple[str, str, str]] = [
    ("s3:", "AWS_ACCESS_KEY_ID", "S3 repository detected but AWS_ACCESS_KEY_ID is not set"),
    ("sftp:", "RESTIC_SFTP_COMMAND", "SFTP repository detected but RESTIC_SFTP_COMMAND might be needed"),
    ("rest:", "RESTIC_REST_USERNAME", "REST repository detected but RESTIC_REST_USERNAME might be needed"),
]


class Validator:
    """Centralized validation for rearden.

    Rule methods return a list of problems instead of raising so that
    ``validate_config`` can report every violation at once.
    """

    @staticmethod
    def validate_profile_name(name: str) -> list[str]:
        """Validate a profile name.

        Profile names must:
        - Be 1-64 characters long
        - Start with an alphanumeric character
        - Contain only alphanumerics, dots, underscores, and hyphens

        Args:
            name: The profile name to validate

        Returns:
            list[str]: Problems found
        """
        if not name:
            return ["Profile name cannot be empty"]
        if len(name) > MAX_PROFILE_NAME_LENGTH:
            return [f"Profile name too long (max {MAX_PROFILE_NAME_LENGTH} characters): {name}"]
        if not VALID_PROFILE_NAME_PATTERN.match(name):
            return [f"Invalid profile name: {name}"]
        return []

    @staticmethod
    def validate_backup_directories(directories: list[str]) -> list[str]:
        """Validate the backup source list.

        Args:
            directories: Configured source directories

        Returns:
            list[str]: One problem per missing directory, or one for an empty list
        """
        if not directories:
            return ["backup_directories is not set. Define it in the init file or profile config."]
        return [
            f"Backup directory does not exist: {directory}"
            for directory in directories
            if not Path(directory).expanduser().is_dir()
        ]

    @staticmethod
    def remote_backend_warnings(repository: str, environ: Mapping[str, str]) -> list[str]:
        """Advisory warnings for direct repositories missing backend credentials."""
        for marker, env_var, message in REMOTE_BACKEND_HINTS:
            if marker in repository:
                return [] if environ.get(env_var) else [message]
        return []

    @staticmethod
    def validate_config(
        cfg: BackupConfig,
        environ: Mapping[str, str] | None = None,
        output: OutputHandler | None = None,
    ) -> BackupConfig:
        """Validate a merged configuration.

        Args:
            cfg: Merged configuration
            environ: Environment used for advisory checks (default: os.environ)
            output: Handler for warnings (default: DefaultOutputHandler)

        Raises:
            ConfigurationError: Listing every violation found

        Returns:
            BackupConfig: The configuration with its password file resolved
        """
        env = os.environ if environ is None else environ
        out = output or DefaultOutputHandler()
        problems: list[str] = []

        problems.extend(Validator.validate_profile_name(cfg.profile))
        problems.extend(Validator.validate_backup_directories(cfg.backup_directories))

        password_file: Path | None = None
        try:
            source, password_file = resolve_credential(
                cfg.restic_password, cfg.restic_password_file, cfg.default_password_file
            )
        except ConfigurationError as e:
            problems.append(e.message)
        else:
            if source is CredentialSource.FILE and password_file != cfg.restic_password_file:
                out.on_log("info", f"Using password file: {password_file}")

        if problems:
            raise ConfigurationError("Configuration is invalid", problems=problems)

        if password_file is not None:
            warning = insecure_permissions_warning(password_file)
            if warning:
                out.on_log("warning", warning)

        sync_enabled = cfg.enable_push or cfg.enable_pull
        if sync_enabled and not cfg.direct_mode and not cfg.rclone_config_path.is_file():
            out.on_log("warning", f"Rclone config not found at {cfg.rclone_config_path}. Remote operations may fail.")

        if cfg.direct_mode:
            for warning in Validator.remote_backend_warnings(cfg.restic_repository, env):
                out.on_log("warning", warning)

        return cfg.model_copy(update={"restic_password_file": password_file})


def resolve_config(
    init_file: Path,
    profile: str | None = None,
    dry_run: bool = False,
    verbose: int = 0,
    environ: Mapping[str, str] | None = None,
    output: OutputHandler | None = None,
) -> BackupConfig:
    """
    Load, merge and validate the configuration for one invocation.

    Raises:
        ConfigurationError: If configuration is missing or invalid

    Returns:
        BackupConfig: The validated configuration
    """
    out = output or DefaultOutputHandler()
    cfg = load_config(init_file, profile=profile, dry_run=dry_run, verbose=verbose, environ=environ)
    out.on_log("info", f"Loaded configuration from {cfg.init_file} (config dir: {cfg.config_dir})")
    profile_file = find_profile_file(cfg.profiles_dir, cfg.profile)
    if profile_file is not None:
        out.on_log("info", f"Loaded profile: {cfg.profile} from {profile_file}")
    return Validator.validate_config(cfg, environ=environ, output=out)
