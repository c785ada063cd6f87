import os
from collections.abc import Callable
from pathlib import Path

import pytest

from rearden.config import load_config
from rearden.core.errors import ConfigurationError
from rearden.core.output import CollectingOutputHandler
from rearden.core.validator import Validator, resolve_config
from tests.fakes import InitWriter


class TestValidateProfileName:
    """Test cases for Validator.validate_profile_name."""

    @pytest.mark.parametrize("name", ["default", "laptop-2", "srv.media", "A_b"])
    def test_valid_names(self, name: str) -> None:
        assert Validator.validate_profile_name(name) == []

    @pytest.mark.parametrize("name", ["", "-leading", "has space", "a/b", "x" * 65])
    def test_invalid_names(self, name: str) -> None:
        assert len(Validator.validate_profile_name(name)) == 1


class TestValidateBackupDirectories:
    """Test cases for Validator.validate_backup_directories."""

    def test_empty_list(self) -> None:
        problems = Validator.validate_backup_directories([])
        assert problems == ["backup_directories is not set. Define it in the init file or profile config."]

    def test_every_missing_directory_is_listed(self, source_dir: Path, tmp_path: Path) -> None:
        missing = [(tmp_path / "gone").as_posix(), (tmp_path / "also-gone").as_posix()]

        problems = Validator.validate_backup_directories([source_dir.as_posix(), *missing])

        assert problems == [f"Backup directory does not exist: {path}" for path in missing]

    def test_file_is_not_a_directory(self, source_dir: Path) -> None:
        problems = Validator.validate_backup_directories([(source_dir / "notes.txt").as_posix()])
        assert len(problems) == 1


class TestValidateConfig:
    """Test cases for Validator.validate_config."""

    def test_empty_source_list_fails(self, write_init: InitWriter) -> None:
        cfg = load_config(write_init(backup_directories=[]), environ={})

        with pytest.raises(ConfigurationError) as exc_info:
            _ = Validator.validate_config(cfg, environ={}, output=CollectingOutputHandler())
        assert "backup_directories is not set" in exc_info.value.problems[0]

    def test_all_violations_reported_together(self, write_init: InitWriter, tmp_path: Path) -> None:
        missing = (tmp_path / "missing").as_posix()
        cfg = load_config(write_init(backup_directories=[missing], restic_password=None), environ={})

        with pytest.raises(ConfigurationError) as exc_info:
            _ = Validator.validate_config(cfg, environ={}, output=CollectingOutputHandler())

        problems = exc_info.value.problems
        assert f"Backup directory does not exist: {missing}" in problems
        assert any("restic_password" in problem for problem in problems)
        assert missing in str(exc_info.value)

    def test_both_password_sources_fail(self, write_init: InitWriter, tmp_path: Path) -> None:
        password_file = tmp_path / "pw.txt"
        _ = password_file.write_text("secret\n")
        cfg = load_config(write_init(restic_password_file=password_file.as_posix()), environ={})

        with pytest.raises(ConfigurationError, match="exactly one"):
            _ = Validator.validate_config(cfg, environ={}, output=CollectingOutputHandler())

    def test_missing_password_file_fails(self, write_init: InitWriter, tmp_path: Path) -> None:
        init_file = write_init(restic_password=None, restic_password_file=(tmp_path / "nope.txt").as_posix())
        cfg = load_config(init_file, environ={})

        with pytest.raises(ConfigurationError) as exc_info:
            _ = Validator.validate_config(cfg, environ={}, output=CollectingOutputHandler())
        assert any("Password file does not exist" in problem for problem in exc_info.value.problems)

    def test_conventional_password_file_fallback(self, write_init: InitWriter, config_dir: Path) -> None:
        config_dir.mkdir()
        password_file = config_dir / "restic-password.txt"
        _ = password_file.write_text("secret\n")
        os.chmod(password_file, 0o600)
        cfg = load_config(write_init(restic_password=None), environ={})
        output = CollectingOutputHandler()

        validated = Validator.validate_config(cfg, environ={}, output=output)

        assert validated.restic_password_file == password_file
        assert f"Using password file: {password_file}" in output.messages("info")
        assert output.messages("warning") == [
            f"Rclone config not found at {config_dir / 'rclone.conf'}. Remote operations may fail."
        ]

    def test_insecure_password_file_warns(self, write_init: InitWriter, tmp_path: Path) -> None:
        password_file = tmp_path / "pw.txt"
        _ = password_file.write_text("secret\n")
        os.chmod(password_file, 0o644)
        init_file = write_init(restic_password=None, restic_password_file=password_file.as_posix())
        output = CollectingOutputHandler()

        _ = Validator.validate_config(load_config(init_file, environ={}), environ={}, output=output)

        assert any("insecure permissions" in message for message in output.messages("warning"))

    def test_missing_rclone_config_is_quiet_when_sync_disabled(self, write_init: InitWriter) -> None:
        cfg = load_config(write_init(enable_push=False, enable_pull=False), environ={})
        output = CollectingOutputHandler()

        _ = Validator.validate_config(cfg, environ={}, output=output)

        assert output.messages("warning") == []

    def test_existing_rclone_config_is_quiet(self, write_init: InitWriter, tmp_path: Path) -> None:
        rclone_conf = tmp_path / "rclone.conf"
        _ = rclone_conf.write_text("[remote]\ntype = local\n")
        cfg = load_config(write_init(rclone_config=rclone_conf.as_posix()), environ={})
        output = CollectingOutputHandler()

        _ = Validator.validate_config(cfg, environ={}, output=output)

        assert output.messages("warning") == []

    @pytest.mark.parametrize(
        ("repository", "env_var"),
        [
            ("s3:s3.amazonaws.com/bucket/restic", "AWS_ACCESS_KEY_ID"),
            ("sftp:backup@host:/srv/restic", "RESTIC_SFTP_COMMAND"),
            ("rest:https://host:8000/", "RESTIC_REST_USERNAME"),
        ],
    )
    def test_direct_backend_advisories(self, write_init: InitWriter, repository: str, env_var: str) -> None:
        cfg = load_config(write_init(restic_repository=repository), environ={})

        quiet = CollectingOutputHandler()
        _ = Validator.validate_config(cfg, environ={env_var: "set"}, output=quiet)
        warned = CollectingOutputHandler()
        _ = Validator.validate_config(cfg, environ={}, output=warned)

        assert quiet.messages("warning") == []
        assert len(warned.messages("warning")) == 1
        assert "repository detected" in warned.messages("warning")[0]


def test_resolve_config_logs_sources(
    init_file: Path, write_profile: Callable[..., Path], output: CollectingOutputHandler
) -> None:
    profile_file = write_profile("default", retention_days=5)

    cfg = resolve_config(init_file, output=output, environ={})

    assert cfg.retention_days == 5
    info = output.messages("info")
    assert any(message.startswith("Loaded configuration from") for message in info)
    assert f"Loaded profile: default from {profile_file}" in info
