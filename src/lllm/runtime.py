"""Shared wiring for the interactive subcommands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from lllm.config.settings import Settings, load_settings
from lllm.config.store import ConfigStore, resolve_api_key
from lllm.core.chat import ChatGateway
from lllm.core.logging import configure_logger
from lllm.core.workspace import WorkspaceLayout, ensure_workspace
from lllm.topics.store import TopicStore

__all__ = ["Runtime", "prepare_runtime"]


@dataclass(frozen=True)
class Runtime:
    layout: WorkspaceLayout
    settings: Settings
    logger: logging.Logger
    log_path: Path
    gateway: ChatGateway
    store: TopicStore


def prepare_runtime(
    *,
    verbose: bool = False,
    env: Mapping[str, str] | None = None,
    client: Any | None = None,
) -> Runtime:
    """Resolve the workspace, settings, logging and chat gateway.

    Raises ``WorkspaceError`` or ``SettingsError``; a missing API key is only
    detected on the first model call.
    """

    layout = ensure_workspace(env=env)
    settings = load_settings(layout.settings_path)
    logger, log_path = configure_logger(
        log_dir=layout.path_for("logs"),
        level=settings.logging.level,
        verbose=verbose or settings.logging.verbose,
    )
    config_store = ConfigStore(layout.config_path)

    def _key_provider() -> str | None:
        resolved = resolve_api_key(config_store, env=env)
        if resolved is None:
            return None
        logger.debug("Using API key", extra={"source": resolved.source})
        return resolved.value

    gateway = ChatGateway(
        model=settings.chat.model,
        key_provider=_key_provider,
        client=client,
        logger=logger.getChild("chat"),
    )
    store = TopicStore.from_layout(layout, logger=logger.getChild("topics"))
    logger.debug(
        "Runtime prepared",
        extra={"home": str(layout.home), "model": settings.chat.model},
    )
    return Runtime(
        layout=layout,
        settings=settings,
        logger=logger,
        log_path=log_path,
        gateway=gateway,
        store=store,
    )
