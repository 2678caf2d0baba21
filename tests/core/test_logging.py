from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from lllm.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _records(path: Path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    return [json.loads(line) for line in lines]


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "lllm.test",
        log_dir=log_dir,
        level="INFO",
        verbose=False,
        filename="test.log",
    )

    logger.info("hello world", extra={"topic": "golang", "value": 3})
    logger.debug("filtered out at INFO")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={
                "value": {"items": [Path(log_dir), 1], "mapping": {"k": "v"}},
                "obj": _Helper(),
            },
        )
    for handler in logger.handlers:
        handler.flush()

    records = _records(log_path)
    assert [record["message"] for record in records] == [
        "hello world",
        "with error",
    ]
    first = records[0]
    assert first["level"] == "INFO"
    assert first["logger"] == "lllm.test"
    assert first["extra"] == {"topic": "golang", "value": 3}

    payload = records[-1]
    assert "ValueError: boom" in payload["exception"]
    assert payload["extra"]["obj"] == "helper"
    assert payload["extra"]["value"]["items"][0] == str(log_dir)

    _close(logger)


def test_secret_fields_are_redacted(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "lllm.test_secret",
        log_dir=tmp_path / "logs",
        filename="secret.log",
    )

    logger.info("key used", extra={"api_key": "sk-live-1234567890"})
    for handler in logger.handlers:
        handler.flush()

    text = log_path.read_text(encoding="utf-8")
    assert "sk-live" not in text
    assert _records(log_path)[0]["extra"]["api_key"] == core_logging.REDACTED

    _close(logger)


def test_child_loggers_propagate_into_file(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "lllm.test_parent",
        log_dir=tmp_path / "logs",
        filename="parent.log",
    )

    logging.getLogger("lllm.test_parent.quiz").info("round started")
    for handler in logger.handlers:
        handler.flush()

    record = _records(log_path)[0]
    assert record["logger"] == "lllm.test_parent.quiz"

    _close(logger)


def test_configure_logger_adds_console_handler(tmp_path):
    logger, _ = core_logging.configure_logger(
        "lllm.test_verbose",
        log_dir=tmp_path / "logs",
        level="INFO",
        verbose=True,
        filename="verbose.log",
    )

    console_handlers = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_lllm_console", False)
    ]
    assert console_handlers

    _close(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    fallback = tmp_path / "fallback-logs"
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: D401, ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)

    logger, log_path = core_logging.configure_logger(
        "lllm.test_blocked",
        log_dir=target,
        filename="blocked.log",
    )

    assert log_path.parent == fallback
    assert log_path.exists()

    _close(logger)


def test_configure_logger_rotating_handler_fallback(tmp_path, monkeypatch):
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: D401, ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    logger, log_path = core_logging.configure_logger(
        "lllm.test_rotating_fallback",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2

    _close(logger)


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    path = core_logging._fallback_log_dir()

    assert path == tmp_path / "lllm-logs"


def test_handlers_are_reused_and_toggled(tmp_path):
    log_dir = tmp_path / "logs"
    logger_name = "lllm.test_toggle"

    def managed(logger, marker):
        return [h for h in logger.handlers if getattr(h, marker, False)]

    logger, _ = core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    assert len(managed(logger, "_lllm_console")) == 1
    assert len(managed(logger, "_lllm_file")) == 1

    core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    assert len(managed(logger, "_lllm_console")) == 1
    assert len(managed(logger, "_lllm_file")) == 1

    core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=False, filename="toggle.log"
    )
    assert not managed(logger, "_lllm_console")

    _close(logger)


def test_default_filename_follows_logger_name(tmp_path):
    logger, log_path = core_logging.configure_logger(log_dir=tmp_path)

    assert logger.name == core_logging.LOGGER_NAME
    assert log_path == tmp_path / "lllm.log"

    _close(logger)


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
