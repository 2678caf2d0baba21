"""Ask mode: interactive questions with per-topic note taking."""

from .session import ASK_SYSTEM_PROMPT, AskContext, AskSession  # noqa: F401

__all__ = ["ASK_SYSTEM_PROMPT", "AskContext", "AskSession"]
