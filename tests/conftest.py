from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from rearden.config import BackupConfig
from rearden.core.output import CollectingOutputHandler
from rearden.core.repository import RepositorySelection, select_repository
from rearden.core.validator import resolve_config
from tests.fakes import FakeRcloneClient, FakeResticClient, InitWriter

ISOLATED_ENV_VARS = (
    "RESTIC_REPOSITORY",
    "RESTIC_PASSWORD",
    "RESTIC_PASSWORD_FILE",
    "RESTIC_PASSWORD_COMMAND",
    "RCLONE_CONFIG",
    "AWS_ACCESS_KEY_ID",
    "RESTIC_SFTP_COMMAND",
    "RESTIC_REST_USERNAME",
    "REARDEN_INIT_FILE",
    "REARDEN_PROFILE",
    "REARDEN_DRY_RUN",
    "REARDEN_VERBOSE",
    "REARDEN_MAX_LOG_FILES",
    "REARDEN_RETENTION_DAYS",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    return tmp_path / "rearden"


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """
    Provides a backup source directory holding a single file.
    """
    source = tmp_path / "data"
    source.mkdir()
    _ = (source / "notes.txt").write_text("hello\n")
    return source


@pytest.fixture
def write_init(tmp_path: Path, config_dir: Path, source_dir: Path) -> InitWriter:
    """
    Returns a helper writing an init.yaml; keyword arguments override the defaults.
    """

    def _write(**overrides: Any) -> Path:
        settings: dict[str, Any] = {
            "config_dir": config_dir.as_posix(),
            "backup_directories": [source_dir.as_posix()],
            "restic_password": "correct-horse-battery-staple",
            "retention_days": 30,
        }
        settings.update(overrides)
        settings = {key: value for key, value in settings.items() if value is not None}
        init_file = tmp_path / "init.yaml"
        _ = init_file.write_text(yaml.safe_dump(settings))
        return init_file

    return _write


@pytest.fixture
def init_file(write_init: InitWriter) -> Path:
    return write_init()


@pytest.fixture
def write_profile(config_dir: Path) -> Callable[..., Path]:
    def _write(name: str, **settings: Any) -> Path:
        profiles_dir = config_dir / "profiles"
        profiles_dir.mkdir(parents=True, exist_ok=True)
        profile_file = profiles_dir / f"{name}.yaml"
        _ = profile_file.write_text(yaml.safe_dump(settings))
        return profile_file

    return _write


@pytest.fixture
def output() -> CollectingOutputHandler:
    return CollectingOutputHandler()


@pytest.fixture
def backup_config(init_file: Path) -> BackupConfig:
    return resolve_config(init_file, output=CollectingOutputHandler(), environ={})


@pytest.fixture
def selection(backup_config: BackupConfig, output: CollectingOutputHandler) -> RepositorySelection:
    return select_repository(backup_config, output=output, environ={})


@pytest.fixture
def fake_restic(output: CollectingOutputHandler) -> FakeResticClient:
    return FakeResticClient(output_handler=output)


@pytest.fixture
def fake_rclone(output: CollectingOutputHandler) -> FakeRcloneClient:
    return FakeRcloneClient(output_handler=output)
