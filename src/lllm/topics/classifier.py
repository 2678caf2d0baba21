"""Topic detection for Ask mode questions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Sequence

from lllm.core.chat import ChatGateway, ChatOptions, Message

__all__ = [
    "CLARIFY_PREFIX",
    "ClarificationMenu",
    "build_classification_prompt",
    "detect_topic",
    "parse_clarification",
]


CLARIFY_PREFIX = "CLARIFY:"
CLASSIFY_OPTIONS = ChatOptions(temperature=0.3, max_tokens=100)

# "2", "2." and "2) rust" all pick option 2
_LEADING_NUMBER = re.compile(r"\s*([+-]?\d+)")


def build_classification_prompt(
    question: str, history: Sequence[Message] = ()
) -> str:
    if history:
        recent = "Recent conversation:\n" + "\n".join(
            f"{message.role}: {message.content}" for message in history
        )
    else:
        recent = ""
    return (
        "Analyze this question and determine its topic.\n"
        "Consider the conversation history if provided.\n\n"
        f'Question: "{question}"\n\n'
        f"{recent}\n\n"
        "If the topic is clear and specific (e.g., mentions \"Go\", "
        "\"TypeScript\", \"RAG\", \"LLMs\"), respond with ONLY the topic name "
        "in lowercase with no spaces (e.g., \"golang\", \"typescript\", "
        "\"rag\", \"llms\").\n\n"
        "If the topic is ambiguous, respond with: \"CLARIFY: option1, "
        "option2, option3\" where you list 2-3 possible topics.\n\n"
        "Topic:"
    )


def detect_topic(
    gateway: ChatGateway,
    question: str,
    history: Sequence[Message] = (),
    *,
    logger: logging.Logger | None = None,
) -> str:
    """Ask the model for a topic token or a ``CLARIFY:`` candidate list."""

    log = logger or logging.getLogger(__name__)
    prompt = build_classification_prompt(question, history)
    response = gateway.chat(
        [Message("user", prompt)],
        CLASSIFY_OPTIONS,
    ).strip()
    log.debug("Topic classified", extra={"response": response})
    return response


def parse_clarification(response: str) -> list[str] | None:
    """Return the candidate topics of a ``CLARIFY:`` reply, else ``None``."""

    if not response.startswith(CLARIFY_PREFIX):
        return None
    body = response[len(CLARIFY_PREFIX):].strip()
    return [option.strip() for option in body.split(",") if option.strip()]


@dataclass(frozen=True)
class ClarificationMenu:
    """Numbered candidate topics plus a trailing "Other (specify)" entry."""

    options: tuple[str, ...]

    @property
    def other_index(self) -> int:
        return len(self.options) + 1

    def lines(self) -> list[str]:
        rows = [
            f"  {idx}. {option}"
            for idx, option in enumerate(self.options, start=1)
        ]
        rows.append(f"  {self.other_index}. Other (specify)")
        return rows

    def prompt(self) -> str:
        return f"Choose (1-{self.other_index}): "

    def choose(self, raw: str) -> str | None:
        """Map a typed choice to an option; ``None`` means free-text entry."""

        match = _LEADING_NUMBER.match(raw)
        if match is None:
            return None
        number = int(match.group(1))
        if 1 <= number <= len(self.options):
            return self.options[number - 1]
        return None
