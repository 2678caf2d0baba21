"""Interactive Ask mode: classify, stream an answer, save the Q&A."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console

from lllm.core.chat import ChatGateway, ChatOptions, Message, UpstreamError
from lllm.topics.classifier import (
    ClarificationMenu,
    detect_topic,
    parse_clarification,
)
from lllm.topics.store import TopicStore, TopicStoreError

__all__ = ["ASK_SYSTEM_PROMPT", "AskContext", "AskSession"]


ASK_SYSTEM_PROMPT = """You are a concise learning assistant. Follow these rules:
1. Keep responses to a maximum of 10 sentences
2. Always provide tangible, concrete examples
3. End your response by asking if the user would like to explore related topics (suggest 2-3 specific follow-up topics)

Be clear, practical, and encourage continued learning."""

_EXIT = "exit"


@dataclass
class AskContext:
    """State carried across turns of one Ask session."""

    history: list[Message] = field(default_factory=list)
    answered: int = 0

    def record(self, question: str, answer: str) -> None:
        self.history.append(Message("user", question))
        self.history.append(Message("assistant", answer))
        self.answered += 1


class AskSession:
    """Read questions until the user types ``exit``."""

    def __init__(
        self,
        *,
        gateway: ChatGateway,
        store: TopicStore,
        console: Console,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        logger: logging.Logger | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._console = console
        self._options = ChatOptions(
            stream=True,
            temperature=temperature,
            max_tokens=max_tokens,
            system=ASK_SYSTEM_PROMPT,
        )
        self._logger = logger or logging.getLogger(__name__)
        self.context = AskContext()

    def run(self) -> AskContext:
        console = self._console
        console.print("Welcome to LLLM Ask Mode!")
        console.print('Type your question (or "exit" to quit)\n')
        while True:
            raw = self._read("> ")
            if raw is None or _is_exit(raw):
                break
            question = raw.strip()
            if not question:
                continue
            try:
                keep_going = self.handle_question(question)
            except (UpstreamError, TopicStoreError) as exc:
                self._logger.error(
                    "Ask turn failed", extra={"error": str(exc)}
                )
                console.print(
                    f"Error: {exc}", style="red", markup=False, emoji=False
                )
                continue
            if not keep_going:
                break
        console.print("\nGoodbye!")
        self._logger.info(
            "Ask session ended", extra={"answered": self.context.answered}
        )
        return self.context

    def handle_question(self, question: str) -> bool:
        """Run one turn; ``False`` means the user asked to leave."""

        topic = self.resolve_topic(question)
        if topic is None:
            return False
        self._console.print(f"\n[Topic: {topic}]\n", markup=False, emoji=False)

        answer = self._stream_answer(question)
        if answer is None:
            return True

        self._store.save_question_answer(topic, question, answer)
        self.context.record(question, answer)
        self._console.print("\n\n---\n")
        return True

    def resolve_topic(self, question: str) -> str | None:
        """Classify ``question``, asking the user when the model is unsure."""

        response = detect_topic(
            self._gateway, question, self.context.history
        )
        options = parse_clarification(response)
        if options is None and response:
            self._logger.info("Topic classified", extra={"topic": response})
            return response

        if options:
            menu = ClarificationMenu(tuple(options))
            self._console.print(
                "\nI'm not sure about the topic. Did you mean:"
            )
            for line in menu.lines():
                self._console.print(line, markup=False, emoji=False)
            raw = self._read("\n" + menu.prompt())
            if raw is None or _is_exit(raw):
                return None
            chosen = menu.choose(raw)
            if chosen is not None:
                self._logger.info(
                    "Topic clarified", extra={"topic": chosen}
                )
                return chosen

        while True:
            raw = self._read("Enter topic name: ")
            if raw is None or _is_exit(raw):
                return None
            custom = raw.strip()
            if custom:
                self._logger.info(
                    "Topic entered", extra={"topic": custom}
                )
                return custom

    def _stream_answer(self, question: str) -> str | None:
        messages = [*self.context.history, Message("user", question)]
        events = self._gateway.stream(messages, self._options)
        for event in events:
            if event.kind == "text":
                self._console.print(
                    event.text,
                    end="",
                    markup=False,
                    emoji=False,
                    highlight=False,
                    soft_wrap=True,
                )
            elif event.kind == "complete":
                return event.text
            else:
                self._console.print(
                    f"\n\nError: {event.error}", style="red", markup=False
                )
                return None
        return None

    def _read(self, prompt: str) -> str | None:
        try:
            return self._console.input(prompt)
        except (EOFError, KeyboardInterrupt):
            return None


def _is_exit(raw: str) -> bool:
    return raw.strip().lower() == _EXIT
