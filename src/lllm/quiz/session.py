"""Interactive quiz loop over previously recorded topics.

One session picks topics from a numbered menu, then plays rounds until the
user leaves: each round draws a random topic from the selection, asks a
generated question and grades up to :data:`MAX_ATTEMPTS` answers. Answers
accumulate across attempts within a round so the grader sees everything the
user has said so far.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Sequence

from rich.console import Console

from lllm.core.chat import ChatGateway
from lllm.topics.store import TopicInfo, TopicStore

from .generator import (
    MAX_ATTEMPTS,
    QuizQuestion,
    critique_answer,
    generate_question,
)

__all__ = [
    "ValidationError",
    "QuizScore",
    "QuizSession",
    "parse_menu_choice",
    "select_topics",
]


_RULE = "=" * 60
_YES = {"yes", "y", ""}
_LEADING_NUMBER = re.compile(r"\s*([+-]?\d+)")

LOGGER = logging.getLogger(__name__)


class ValidationError(RuntimeError):
    """Raised when a menu choice is out of range or not a number."""


@dataclass
class QuizScore:
    correct: int = 0
    asked: int = 0

    @property
    def percentage(self) -> int:
        if self.asked == 0:
            return 0
        # half up: 1/8 -> 13
        return (self.correct * 200 + self.asked) // (self.asked * 2)

    def summary(self) -> str:
        return f"Score: {self.correct}/{self.asked} ({self.percentage}%)"


def parse_menu_choice(raw: str, topic_count: int) -> int:
    """Return the 1-based menu choice; ``topic_count + 1`` is "All topics"."""

    match = _LEADING_NUMBER.match(raw)
    if match is None:
        raise ValidationError("Invalid choice")
    number = int(match.group(1))
    if number < 1 or number > topic_count + 1:
        raise ValidationError("Invalid choice")
    return number


def select_topics(topics: Sequence[str], choice: int) -> list[str]:
    if choice == len(topics) + 1:
        return list(topics)
    return [topics[choice - 1]]


class QuizSession:
    """Drive one quiz from topic menu to final score."""

    def __init__(
        self,
        *,
        gateway: ChatGateway,
        store: TopicStore,
        console: Console,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._console = console
        self._rng = rng or random.Random()
        self.score = QuizScore()

    def run(self) -> QuizScore:
        """Play until the user stops.

        Raises :class:`ValidationError` for a bad menu choice. Model, parse
        and storage failures propagate and end the session.
        """

        console = self._console
        console.print("Welcome to LLLM Quiz Mode!\n")

        topics = self._store.list_topics()
        if not topics:
            console.print(
                'No topics found. Use "lllm ask" to learn something first!'
            )
            return self.score

        index = self._store.load_metadata()
        console.print("Available topics:")
        for idx, key in enumerate(topics, start=1):
            info = index[key]
            console.print(
                f"  {idx}. {info.display_name} ({info.question_count} Q&As)",
                markup=False,
                emoji=False,
            )
        console.print(f"  {len(topics) + 1}. All topics\n")

        raw = self._read(f"Select a topic (1-{len(topics) + 1}): ")
        if raw is None or raw.strip().lower() == "exit":
            return self.score
        choice = parse_menu_choice(raw, len(topics))
        selected = select_topics(topics, choice)

        console.print(
            '\nStarting quiz! (Type "exit" to quit, "skip" for new question)\n'
        )
        while self._play_round(selected, index):
            pass
        self._finish()
        return self.score

    def _play_round(
        self, selected: Sequence[str], index: dict[str, TopicInfo]
    ) -> bool:
        key = self._rng.choice(list(selected))
        content = self._store.get_topic_content(key)
        question = generate_question(self._gateway, content)
        self._show_question(index[key], question)
        self.score.asked += 1
        LOGGER.info(
            "Quiz round started",
            extra={"topic": key, "difficulty": question.difficulty},
        )

        attempt = 1
        answers: list[str] = []
        while True:
            raw = self._read("Your answer: ")
            if raw is None:
                return False
            answer = raw.strip()
            if answer.lower() == "exit":
                return False
            if answer.lower() == "skip":
                self._console.print("\n⏭ Skipping to next question...\n")
                return True
            if not answer:
                self._console.print("Please provide an answer.\n")
                continue

            answers.append(answer)
            self._console.print("\nEvaluating...\n")
            critique = critique_answer(
                self._gateway,
                question.question,
                question.expected_key_points,
                " ".join(answers),
                attempt,
            )
            if critique.feedback:
                self._console.print(
                    critique.feedback, markup=False, emoji=False
                )
                self._console.print()

            if critique.is_correct:
                self._console.print("✓ Correct!\n")
                self.score.correct += 1
                return self._ask_continue()
            if attempt < MAX_ATTEMPTS and critique.hint:
                self._console.print(
                    f"Hint: {critique.hint}\n", markup=False, emoji=False
                )
                attempt += 1
                self._console.print(f"Attempt {attempt}/{MAX_ATTEMPTS}:\n")
                continue
            self._console.print("✗ Moving on to next question.\n")
            return self._ask_continue()

    def _show_question(self, info: TopicInfo, question: QuizQuestion) -> None:
        console = self._console
        console.print(f"\n{_RULE}")
        console.print(f"Topic: {info.display_name}", markup=False, emoji=False)
        console.print(f"Difficulty: {question.difficulty.upper()}")
        console.print(f"{_RULE}\n")
        console.print(
            f"Question: {question.question}\n", markup=False, emoji=False
        )

    def _ask_continue(self) -> bool:
        raw = self._read("Continue to next question? (yes/no): ")
        if raw is None:
            return False
        return raw.strip().lower() in _YES

    def _finish(self) -> None:
        self._console.print("\n\nQuiz complete!")
        self._console.print(self.score.summary())
        LOGGER.info(
            "Quiz finished",
            extra={
                "correct": self.score.correct,
                "asked": self.score.asked,
                "percentage": self.score.percentage,
            },
        )

    def _read(self, prompt: str) -> str | None:
        try:
            return self._console.input(prompt)
        except (EOFError, KeyboardInterrupt):
            return None
