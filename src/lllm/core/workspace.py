"""Locate and create the lllm data directory."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


WORKSPACE_ENV = "LLLM_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".lllm"

CONFIG_FILENAME = "config.json"
SETTINGS_FILENAME = "settings.toml"
METADATA_FILENAME = "metadata.json"

_SUBDIRS = ("topics", "logs")


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Paths under one lllm home, plus which directories were just made."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        return tuple(self.directories.items())

    @property
    def config_path(self) -> Path:
        return self.home / CONFIG_FILENAME

    @property
    def settings_path(self) -> Path:
        return self.home / SETTINGS_FILENAME

    @property
    def metadata_path(self) -> Path:
        return self.home / METADATA_FILENAME


def ensure_workspace(
    *, env: Mapping[str, str] | None = None
) -> WorkspaceLayout:
    """Create the lllm home and its subdirectories, returning the layout.

    ``$LLLM_DATA_HOME`` wins when set. The default ``~/.lllm`` falls back to
    ``<tmp>/lllm-data`` if it cannot be created; an explicit home never does.
    """

    home, explicit = _home_from_env(os.environ if env is None else env)
    homes = [home]
    fallback = _fallback_base()
    if not explicit and fallback != home:
        homes.append(fallback)

    failure: PermissionError | None = None
    for candidate in homes:
        try:
            return _build_layout(candidate)
        except PermissionError as exc:
            failure = exc
    raise WorkspaceError(f"Unable to prepare workspace at {home}") from failure


def _fallback_base() -> Path:
    return Path(tempfile.gettempdir()) / "lllm-data"


def _home_from_env(env: Mapping[str, str]) -> tuple[Path, bool]:
    configured = (env.get(WORKSPACE_ENV) or "").strip()
    target = Path(configured) if configured else DEFAULT_WORKSPACE
    target = target.expanduser()
    try:
        return target.resolve(), bool(configured)
    except FileNotFoundError:
        return target.absolute(), bool(configured)


def _build_layout(home: Path) -> WorkspaceLayout:
    if home.exists() and not home.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {home}"
        )
    created = {"home": _make_private_dir(home)}
    directories: dict[str, Path] = {}
    for name in _SUBDIRS:
        directories[name] = home / name
        created[name] = _make_private_dir(directories[name])
    return WorkspaceLayout(
        home=home,
        directories=MappingProxyType(directories),
        created=MappingProxyType(created),
    )


def _make_private_dir(path: Path) -> bool:
    """Create ``path`` with mode 0700; ``True`` when it did not exist."""

    if path.exists():
        if not path.is_dir():
            raise WorkspaceError(
                f"Expected directory but found a non-directory entry: {path}"
            )
        fresh = False
    else:
        fresh = True
    path.mkdir(parents=True, exist_ok=True)
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):
        pass
    return fresh
