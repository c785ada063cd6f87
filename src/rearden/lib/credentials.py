"""Credential resolution for the snapshot engine.

restic needs exactly one password source: a value (``RESTIC_PASSWORD``) or a
file (``--password-file``). When neither is configured, a conventional
``restic-password.txt`` inside the config directory is used.

Password values are only ever handed to restic through its environment so
they never show up in displayed command lines.
"""

import stat
from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path

from rearden.core.errors import ConfigurationError

PASSWORD_ENV_VARS = ("RESTIC_PASSWORD", "RESTIC_PASSWORD_FILE", "RESTIC_PASSWORD_COMMAND")


class CredentialSource(StrEnum):
    """Where the repository password comes from."""

    VALUE = "value"
    FILE = "file"


def resolve_credential(
    password: str | None,
    password_file: Path | None,
    default_password_file: Path,
) -> tuple[CredentialSource, Path | None]:
    """Resolve the single password source restic will use.

    Resolution order:
    1. Password value, if set (and no password file is set)
    2. Password file, if set (and it exists)
    3. ``default_password_file``, if it exists

    Args:
        password: Password value from configuration or RESTIC_PASSWORD
        password_file: Password file from configuration or RESTIC_PASSWORD_FILE
        default_password_file: Conventional password file inside the config dir

    Raises:
        ConfigurationError: If both or neither source resolve, or the password file is missing

    Returns:
        tuple[CredentialSource, Path | None]: The source and, for file sources, the file path
    """
    if password and password_file:
        raise ConfigurationError(
            "Both restic_password and restic_password_file are set; configure exactly one.",
            config_key="restic_password",
        )

    if password:
        return CredentialSource.VALUE, None

    if password_file:
        if not password_file.is_file():
            raise ConfigurationError(
                f"Password file does not exist: {password_file}", config_key="restic_password_file"
            )
        return CredentialSource.FILE, password_file

    if default_password_file.is_file():
        return CredentialSource.FILE, default_password_file

    raise ConfigurationError(
        "restic_password or restic_password_file must be set for restic to work "
        f"(or create {default_password_file}).",
        config_key="restic_password",
    )


def insecure_permissions_warning(password_file: Path) -> str | None:
    """Describe insecure permissions on a password file.

    Args:
        password_file: Path to the password file

    Returns:
        str | None: A warning message if the file is not 0o600, else None
    """
    file_mode = stat.S_IMODE(password_file.stat().st_mode)
    if file_mode & 0o077:
        return (
            f"Password file has insecure permissions: {oct(file_mode)}. "
            f"Expected 0o600 (owner read/write only). Run: chmod 600 {password_file}"
        )
    return None


def build_engine_env(environ: Mapping[str, str], password: str | None) -> dict[str, str]:
    """Build the environment restic runs with.

    Inherited password variables are dropped so the resolved source is the
    only one restic sees.

    Args:
        environ: Base environment (backend credentials such as AWS keys pass through)
        password: Password value, when the credential source is a value

    Returns:
        dict[str, str]: Environment for the restic subprocess
    """
    env = {key: value for key, value in environ.items() if key not in PASSWORD_ENV_VARS}
    if password:
        env["RESTIC_PASSWORD"] = password
    return env
