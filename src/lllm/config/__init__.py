"""Credential storage and user settings."""

from .settings import (  # noqa: F401
    ChatSettings,
    LoggingSettings,
    Settings,
    SettingsError,
    load_settings,
    settings_template,
    write_template,
)
from .store import (  # noqa: F401
    Config,
    ConfigStore,
    ResolvedKey,
    mask_api_key,
    resolve_api_key,
)

__all__ = [
    "ChatSettings",
    "LoggingSettings",
    "Settings",
    "SettingsError",
    "load_settings",
    "settings_template",
    "write_template",
    "Config",
    "ConfigStore",
    "ResolvedKey",
    "mask_api_key",
    "resolve_api_key",
]
