import logging
from typing import Any

import pytest

from rearden.core.output import SUCCESS, CollectingOutputHandler, DefaultOutputHandler, SilentOutputHandler


def _capture_prints(
    monkeypatch: pytest.MonkeyPatch, handler: DefaultOutputHandler
) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
    printed: list[tuple[tuple[Any, ...], dict[str, Any]]] = []

    def fake_print(*args: Any, **kwargs: Any) -> None:
        printed.append((args, kwargs))

    monkeypatch.setattr(handler._console, "print", fake_print)
    return printed


def test_success_level_is_registered() -> None:
    assert logging.getLevelName(SUCCESS) == "SUCCESS"
    assert logging.INFO < SUCCESS < logging.WARNING


def test_on_stdout_prints_engine_line_verbatim(monkeypatch: pytest.MonkeyPatch) -> None:
    handler = DefaultOutputHandler()
    printed = _capture_prints(monkeypatch, handler)

    handler.on_stdout("snapshot [4f2a1c3b] saved\n")

    assert printed == [(("snapshot [4f2a1c3b] saved",), {"markup": False, "highlight": False})]


def test_on_log_uses_rearden_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    handler = DefaultOutputHandler()
    records: list[tuple[int, str]] = []
    monkeypatch.setattr(handler._logger, "log", lambda level, message: records.append((level, message)))

    handler.on_log("success", "Backup completed successfully.")
    handler.on_log("warning", "Backup step is disabled.")
    handler.on_log("unknown", "falls back to info")

    assert records == [
        (SUCCESS, "Backup completed successfully."),
        (logging.WARNING, "Backup step is disabled."),
        (logging.INFO, "falls back to info"),
    ]


def test_collecting_handler() -> None:
    handler = CollectingOutputHandler()

    handler.on_log("info", "one")
    handler.on_log("warning", "two")
    handler.on_stdout("line\r\n")

    assert handler.messages() == ["one", "two"]
    assert handler.messages("warning") == ["two"]
    assert handler.stdout_lines == ["line"]

    handler.clear()
    assert handler.log_messages == []
    assert handler.stdout_lines == []


def test_silent_handler_discards() -> None:
    handler = SilentOutputHandler()

    handler.on_log("error", "ignored")
    handler.on_stdout("ignored")
