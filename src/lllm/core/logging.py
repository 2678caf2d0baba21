"""Logging helpers shared across lllm subcommands."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "LOGGER_NAME",
    "JsonLogFormatter",
    "configure_logger",
]


LOGGER_NAME = "lllm"
REDACTED = "***"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_SECRET_KEYS = frozenset({"api_key", "apiKey", "authorization"})


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str = LOGGER_NAME,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Configure and return a namespaced logger with JSON file output.

    Child loggers (``lllm.ask.session`` and friends) propagate into the
    handlers installed here. Repeated calls reuse the managed handlers, so the
    CLI can configure logging once per command without duplicating output.
    When ``log_dir`` is not writable the file goes to ``<tmp>/lllm-logs``.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    handler = _file_handler(
        logger,
        (log_dir, _fallback_log_dir()),
        log_name,
        max_bytes=max_bytes,
        backup_count=backup_count,
    )
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))
    _toggle_console_handler(logger, enabled=verbose)
    return logger, Path(handler.baseFilename)


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.INFO


def _file_handler(
    logger: logging.Logger,
    directories: tuple[Path, Path],
    filename: str,
    *,
    max_bytes: int,
    backup_count: int,
) -> RotatingFileHandler:
    wanted = {(directory / filename).absolute() for directory in directories}
    for handler in list(logger.handlers):
        if not getattr(handler, "_lllm_file", False):
            continue
        if Path(handler.baseFilename) in wanted:
            return handler  # type: ignore[return-value]
        logger.removeHandler(handler)
        handler.close()

    primary, fallback = directories
    try:
        handler = _rotating_handler(
            primary / filename, max_bytes, backup_count
        )
    except PermissionError:
        handler = _rotating_handler(
            fallback / filename, max_bytes, backup_count
        )
    handler.setFormatter(JsonLogFormatter())
    handler._lllm_file = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return handler


def _rotating_handler(
    path: Path, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    _chmod_quietly(path.parent, 0o700)
    path.touch(exist_ok=True)
    _chmod_quietly(path, 0o600)
    return RotatingFileHandler(
        path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )


def _toggle_console_handler(logger: logging.Logger, *, enabled: bool) -> None:
    existing = [
        handler
        for handler in logger.handlers
        if getattr(handler, "_lllm_console", False)
    ]
    if enabled and not existing:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(
            logging.Formatter("%(levelname)s %(name)s %(message)s")
        )
        console._lllm_console = True  # type: ignore[attr-defined]
        logger.addHandler(console)
    elif not enabled:
        for handler in existing:
            logger.removeHandler(handler)
            handler.close()


def _coerce_value(key: str, value: Any) -> Any:
    if key in _SECRET_KEYS and value:
        return REDACTED
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {
            str(name): _coerce_value(str(name), item)
            for name, item in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value("", item) for item in value]
    return repr(value)


def _chmod_quietly(path: Path, mode: int) -> None:
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "lllm-logs"
