import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from rearden.config import BackupConfig
from rearden.core.repository import RepositoryHandle
from rearden.lib.colors import COLOR_HEX, RICH_THEME

console = Console(theme=RICH_THEME)

_transcript = logging.getLogger("rearden.transcript")


def _on_off(value: bool) -> str:
    return "Yes" if value else "No"


def config_rows(cfg: BackupConfig, repo: RepositoryHandle, log_file: Path | None) -> list[tuple[str, str]]:
    """
    Build the key/value rows describing the effective configuration.

    Secrets are never included.
    """
    rows = [
        ("CONFIG_DIR", cfg.config_dir.as_posix()),
        ("PROFILE", cfg.profile),
    ]
    if repo.is_direct:
        rows.extend([("RESTIC_REPOSITORY", repo.location), ("USE_REMOTE_REPO", "Yes")])
    else:
        rows.extend(
            [
                ("LOCAL_BACKUP_REPO", cfg.local_backup_root.as_posix()),
                ("RCLONE_REMOTE", cfg.rclone_remote),
                ("USE_REMOTE_REPO", "No"),
            ]
        )
    rows.extend(
        [
            ("BACKUP_DIRECTORIES", " ".join(cfg.backup_directories)),
            ("DRY_RUN", _on_off(cfg.dry_run)),
            ("RETENTION_DAYS", str(cfg.retention_days)),
            ("VERIFY_BACKUP", _on_off(cfg.verify_backup)),
            ("ENABLE_BACKUP", _on_off(cfg.enable_backup)),
            ("ENABLE_RESTORE", _on_off(cfg.enable_restore)),
            ("ENABLE_PUSH", _on_off(cfg.enable_push)),
            ("ENABLE_PULL", _on_off(cfg.enable_pull)),
            ("LOG_FILE", log_file.as_posix() if log_file else "-"),
            ("RCLONE_CONFIG", cfg.rclone_config_path.as_posix()),
        ]
    )
    return rows


def output_config_table(cfg: BackupConfig, repo: RepositoryHandle, log_file: Path | None = None) -> None:
    """
    Pretty print the effective configuration and record it in the session log.
    """
    rows = config_rows(cfg, repo, log_file)
    table = Table(title="Current Configuration", show_header=False, title_style=f"bold {COLOR_HEX.mauve}")
    table.add_column("Setting", style=f"bold {COLOR_HEX.sky}")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(key, value)
        _transcript.info("  %-20s %s", f"{key}:", value)
    console.print(table)


def confirm_restore(target: str) -> bool:
    """
    Prompts the user to confirm a restore that may overwrite files.

    Args:
        target (str): directory the snapshot will be restored into

    Returns:
        bool: True if the user answered yes
    """
    resp = console.input(f"[bold {COLOR_HEX.red}]This will restore files to [bold]{target}[/]. Are you sure? (y/n) ")
    return resp.strip().lower() in {"y", "yes"}
