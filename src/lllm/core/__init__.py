"""Core shared helpers for lllm subcommands."""

from __future__ import annotations

from .ai import API_KEY_ENV, ConfigurationError, load_client
from .chat import (
    DEFAULT_MODEL,
    ChatGateway,
    ChatOptions,
    Message,
    StreamEvent,
    StreamHandler,
    UpstreamError,
)
from .logging import LOGGER_NAME, JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "API_KEY_ENV",
    "ConfigurationError",
    "load_client",
    "DEFAULT_MODEL",
    "ChatGateway",
    "ChatOptions",
    "Message",
    "StreamEvent",
    "StreamHandler",
    "UpstreamError",
    "LOGGER_NAME",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
