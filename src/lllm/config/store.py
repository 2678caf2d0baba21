"""Persistence for the single stored API credential."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Mapping, MutableMapping

from dotenv import find_dotenv, load_dotenv

from lllm.core.ai import API_KEY_ENV, ConfigurationError

__all__ = [
    "Config",
    "ConfigStore",
    "ResolvedKey",
    "mask_api_key",
    "resolve_api_key",
]


KeySource = Literal["config", "env"]


@dataclass(frozen=True)
class Config:
    """Contents of ``config.json``."""

    api_key: str | None = None

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {}
        if self.api_key:
            payload["apiKey"] = self.api_key
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Config":
        raw = payload.get("apiKey")
        api_key = str(raw) if raw else None
        return cls(api_key=api_key)


@dataclass(frozen=True)
class ResolvedKey:
    """An API key plus where it came from."""

    value: str
    source: KeySource


class ConfigStore:
    """Read and write ``config.json``; every call re-reads the file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Config:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.is_file():
            return Config()
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Failed to parse config file: {self._path}"
            ) from exc
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                f"Config file must contain a JSON object: {self._path}"
            )
        return Config.from_dict(payload)

    def save(self, config: Config) -> None:
        _write_json(self._path, config.to_dict())

    def get_api_key(self) -> str | None:
        return self.load().api_key

    def set_api_key(self, api_key: str) -> None:
        key = api_key.strip()
        if not key:
            raise ConfigurationError("API key cannot be empty.")
        current = self.load()
        payload = current.to_dict()
        payload["apiKey"] = key
        self.save(Config.from_dict(payload))


def resolve_api_key(
    store: ConfigStore, *, env: Mapping[str, str] | None = None
) -> ResolvedKey | None:
    """Return the active credential; ``config.json`` wins over the env."""

    stored = store.get_api_key()
    if stored:
        return ResolvedKey(value=stored, source="config")
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
    from_env = (env.get(API_KEY_ENV) or "").strip()
    if from_env:
        return ResolvedKey(value=from_env, source="env")
    return None


def mask_api_key(api_key: str) -> str:
    """Show the first 7 and last 4 characters of ``api_key``."""

    if len(api_key) <= 11:
        return "*" * len(api_key)
    return f"{api_key[:7]}...{api_key[-4:]}"


def _write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
    )
    try:
        json.dump(payload, handle, indent=2)
        handle.write("\n")
    finally:
        handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
