import os
from pathlib import Path

import pytest

from rearden.core import lock as lock_module
from rearden.core.errors import ConcurrencyError
from rearden.core.lock import ExecutionLock, pid_is_running, read_lock_pid
from rearden.core.output import CollectingOutputHandler


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "locks" / "rearden-backup.lock"


def test_pid_is_running() -> None:
    assert pid_is_running(os.getpid()) is True
    assert pid_is_running(0) is False
    assert pid_is_running(-5) is False


def test_acquire_and_release(lock_path: Path) -> None:
    output = CollectingOutputHandler()
    execution_lock = ExecutionLock(lock_path, output=output)

    execution_lock.acquire()
    assert read_lock_pid(lock_path) == os.getpid()
    assert execution_lock.acquired is True

    execution_lock.release()
    assert not lock_path.exists()
    assert output.messages("info") == [f"Created lock file with PID {os.getpid()}", "Removed lock file"]


def test_live_owner_blocks(lock_path: Path) -> None:
    lock_path.parent.mkdir(parents=True)
    owner = os.getppid()
    _ = lock_path.write_text(f"{owner}\n")

    with pytest.raises(ConcurrencyError) as exc_info:
        ExecutionLock(lock_path, output=CollectingOutputHandler()).acquire()

    assert exc_info.value.pid == owner
    assert read_lock_pid(lock_path) == owner


def test_stale_record_is_replaced(lock_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lock_path.parent.mkdir(parents=True)
    _ = lock_path.write_text("424242\n")
    monkeypatch.setattr(lock_module, "pid_is_running", lambda pid: False)
    output = CollectingOutputHandler()

    with ExecutionLock(lock_path, output=output):
        assert read_lock_pid(lock_path) == os.getpid()

    assert output.messages("warning") == ["Found stale lock file. Previous process may have crashed."]
    assert not lock_path.exists()


def test_unreadable_record_is_stale(lock_path: Path) -> None:
    lock_path.parent.mkdir(parents=True)
    _ = lock_path.write_text("not-a-pid")

    with ExecutionLock(lock_path, output=CollectingOutputHandler()):
        assert read_lock_pid(lock_path) == os.getpid()


def test_released_when_body_raises(lock_path: Path) -> None:
    with pytest.raises(RuntimeError), ExecutionLock(lock_path, output=CollectingOutputHandler()):
        raise RuntimeError("routine failed")

    assert not lock_path.exists()


def test_released_on_system_exit(lock_path: Path) -> None:
    with pytest.raises(SystemExit), ExecutionLock(lock_path, output=CollectingOutputHandler()):
        raise SystemExit(143)

    assert not lock_path.exists()


def test_sequential_runs_succeed(lock_path: Path) -> None:
    for _ in range(2):
        with ExecutionLock(lock_path, output=CollectingOutputHandler()):
            assert lock_path.exists()
    assert not lock_path.exists()


def test_lost_creation_race(lock_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def racing_open(path: Path, flags: int, mode: int = 0o777) -> int:
        raise FileExistsError(path)

    monkeypatch.setattr(lock_module.os, "open", racing_open)

    with pytest.raises(ConcurrencyError, match="concurrently"):
        ExecutionLock(lock_path, output=CollectingOutputHandler()).acquire()


def test_release_tolerates_missing_record(lock_path: Path) -> None:
    execution_lock = ExecutionLock(lock_path, output=CollectingOutputHandler())

    execution_lock.release()

    assert execution_lock.acquired is False
