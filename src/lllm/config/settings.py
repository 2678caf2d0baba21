"""User settings for lllm, backed by an optional TOML file.

The settings file is optional: when ``settings.toml`` is absent every value
comes from the defaults below. When present, it may override any subset of the
known keys; unknown keys are rejected so typos surface early.
"""

from __future__ import annotations

import copy
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping

from lllm.core.chat import DEFAULT_MODEL

__all__ = [
    "SettingsError",
    "ChatSettings",
    "LoggingSettings",
    "Settings",
    "default_tree",
    "load_settings",
    "settings_template",
    "write_template",
]


class SettingsError(RuntimeError):
    """Raised when settings parsing or validation fails."""


@dataclass(frozen=True)
class ChatSettings:
    model: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    verbose: bool


@dataclass(frozen=True)
class Settings:
    chat: ChatSettings
    logging: LoggingSettings


_DEFAULTS: Dict[str, Any] = {
    "chat": {
        "model": DEFAULT_MODEL,
        "temperature": 0.7,
        "max_tokens": 4096,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}

_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default settings tree."""

    return copy.deepcopy(_DEFAULTS)


def load_settings(path: Path) -> Settings:
    """Load ``path`` on top of the defaults; a missing file means defaults."""

    tree = default_tree()
    if path.is_file():
        data = _load_toml(path)
        _merge_dict(tree, data)
    return _build_settings(tree)


def settings_template() -> str:
    """Return the commented TOML template written by ``config init``."""

    return _SETTINGS_TEMPLATE.strip() + "\n"


def write_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write the default template to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise SettingsError(f"Settings file already exists: {path}")
    with path.open("w", encoding="utf-8") as fh:
        fh.write(settings_template())
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise SettingsError(f"Failed to parse settings TOML: {exc}") from exc


def _merge_dict(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise SettingsError(f"Unknown settings key '{dotted}'.")
        if isinstance(base[key], MutableMapping):
            if not isinstance(value, Mapping):
                raise SettingsError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted, type(value).__name__
                    )
                )
            _merge_dict(base[key], value, path=f"{dotted}.")
        else:
            base[key] = value


def _build_settings(tree: Mapping[str, Any]) -> Settings:
    chat = tree["chat"]
    model = chat["model"]
    if not isinstance(model, str) or not model.strip():
        raise SettingsError("'chat.model' must be a non-empty string.")
    temperature = chat["temperature"]
    if isinstance(temperature, bool) or not isinstance(
        temperature, (int, float)
    ):
        raise SettingsError("'chat.temperature' must be a number.")
    if not 0.0 <= float(temperature) <= 2.0:
        raise SettingsError("'chat.temperature' must be between 0.0 and 2.0.")
    max_tokens = chat["max_tokens"]
    if (
        isinstance(max_tokens, bool)
        or not isinstance(max_tokens, int)
        or max_tokens <= 0
    ):
        raise SettingsError("'chat.max_tokens' must be a positive integer.")

    log = tree["logging"]
    level = log["level"]
    if not isinstance(level, str) or level.strip().upper() not in _LEVELS:
        raise SettingsError(
            "'logging.level' must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = log["verbose"]
    if not isinstance(verbose, bool):
        raise SettingsError("'logging.verbose' must be a boolean.")

    return Settings(
        chat=ChatSettings(
            model=model.strip(),
            temperature=float(temperature),
            max_tokens=max_tokens,
        ),
        logging=LoggingSettings(level=level.strip().upper(), verbose=verbose),
    )


_SETTINGS_TEMPLATE = """
# lllm settings

[chat]
# Chat completion model used for answers, quizzes and grading
model = "gpt-4o-mini"
# Sampling temperature for Ask mode answers (0.0-2.0)
temperature = 0.7
# Cap Ask mode answers to this many tokens
max_tokens = 4096

[logging]
# Level for the JSON log file under <data home>/logs
level = "INFO"
# Also echo log records to stderr
verbose = false
"""
