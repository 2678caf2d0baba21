from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable without an editable install
ROOT = TESTS_DIR.parent
for extra in (ROOT / "src",):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import OpenAIStub, StubConsole  # noqa: E402
from lllm.core import workspace as workspace_mod  # noqa: E402
from lllm.core.ai import API_KEY_ENV  # noqa: E402
from lllm.core.chat import ChatGateway  # noqa: E402
from lllm.core.logging import LOGGER_NAME  # noqa: E402
from lllm.topics.store import TopicStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Point the workspace at tmp_path and hide any real credential."""

    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(tmp_path / "home"))
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def layout() -> workspace_mod.WorkspaceLayout:
    return workspace_mod.ensure_workspace()


@pytest.fixture
def openai_stub() -> OpenAIStub:
    return OpenAIStub()


@pytest.fixture
def gateway(openai_stub: OpenAIStub) -> ChatGateway:
    return ChatGateway(client=openai_stub)


@pytest.fixture
def topic_store(layout: workspace_mod.WorkspaceLayout) -> TopicStore:
    return TopicStore.from_layout(layout)


@pytest.fixture
def make_console():
    def _factory(*prompts):
        return StubConsole(prompts)

    return _factory
