"""Model-backed quiz question synthesis and answer grading."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence

from lllm.core.chat import ChatGateway, ChatOptions, Message

__all__ = [
    "MAX_ATTEMPTS",
    "ParseError",
    "GenerationError",
    "CritiqueError",
    "QuizQuestion",
    "Critique",
    "strip_code_fences",
    "generate_question",
    "critique_answer",
]


MAX_ATTEMPTS = 3
GENERATE_OPTIONS = ChatOptions(temperature=0.7, max_tokens=500)
CRITIQUE_OPTIONS = ChatOptions(temperature=0.3, max_tokens=800)

Difficulty = Literal["easy", "medium", "hard"]
_DIFFICULTIES = ("easy", "medium", "hard")

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```\s*$", re.IGNORECASE)

LOGGER = logging.getLogger(__name__)


class ParseError(RuntimeError):
    """Raised when a model reply is not the JSON shape we asked for."""


class GenerationError(ParseError):
    """Raised when a quiz question cannot be parsed."""


class CritiqueError(ParseError):
    """Raised when a grading reply cannot be parsed."""


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    difficulty: Difficulty
    expected_key_points: tuple[str, ...]

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizQuestion":
        question = payload.get("question")
        if not isinstance(question, str) or not question.strip():
            raise ValueError("'question' must be a non-empty string")
        difficulty = str(payload.get("difficulty", "")).strip().lower()
        if difficulty not in _DIFFICULTIES:
            raise ValueError(f"unknown difficulty {difficulty!r}")
        points = payload.get("expectedKeyPoints")
        if (
            not isinstance(points, list)
            or not points
            or not all(isinstance(point, str) for point in points)
        ):
            raise ValueError(
                "'expectedKeyPoints' must be a non-empty list of strings"
            )
        return cls(
            question=question.strip(),
            difficulty=difficulty,  # type: ignore[arg-type]
            expected_key_points=tuple(points),
        )


@dataclass(frozen=True)
class Critique:
    is_correct: bool
    feedback: str
    hint: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Critique":
        is_correct = payload.get("isCorrect")
        if not isinstance(is_correct, bool):
            raise ValueError("'isCorrect' must be a boolean")
        feedback = payload.get("feedback") or ""
        if not isinstance(feedback, str):
            raise ValueError("'feedback' must be a string")
        hint = payload.get("hint")
        if hint is not None and not isinstance(hint, str):
            raise ValueError("'hint' must be a string when present")
        return cls(is_correct=is_correct, feedback=feedback, hint=hint or None)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json fence from a model reply."""

    cleaned = _FENCE_OPEN.sub("", text.strip())
    return _FENCE_CLOSE.sub("", cleaned)


def generate_question(gateway: ChatGateway, topic_content: str) -> QuizQuestion:
    """Ask the model for one open-ended question about ``topic_content``."""

    response = gateway.chat(
        [Message("user", _generation_prompt(topic_content))],
        GENERATE_OPTIONS,
    )
    try:
        payload = _load_object(response)
        question = QuizQuestion.from_dict(payload)
    except ValueError as exc:
        LOGGER.error(
            "Failed to parse question",
            extra={"response": response, "error": str(exc)},
        )
        raise GenerationError("Failed to generate question") from exc
    LOGGER.info(
        "Question generated",
        extra={
            "difficulty": question.difficulty,
            "key_points": len(question.expected_key_points),
        },
    )
    return question


def critique_answer(
    gateway: ChatGateway,
    question: str,
    expected_key_points: Sequence[str],
    accumulated_answer: str,
    attempt_number: int,
) -> Critique:
    """Grade ``accumulated_answer`` against ``expected_key_points``.

    On the final attempt an incorrect critique never carries a hint.
    """

    prompt = _critique_prompt(
        question, expected_key_points, accumulated_answer, attempt_number
    )
    response = gateway.chat([Message("user", prompt)], CRITIQUE_OPTIONS)
    try:
        critique = Critique.from_dict(_load_object(response))
    except ValueError as exc:
        LOGGER.error(
            "Failed to parse critique",
            extra={"response": response, "error": str(exc)},
        )
        raise CritiqueError("Failed to critique answer") from exc
    if attempt_number >= MAX_ATTEMPTS and not critique.is_correct:
        critique = Critique(is_correct=False, feedback=critique.feedback)
    LOGGER.info(
        "Answer critiqued",
        extra={"attempt": attempt_number, "correct": critique.is_correct},
    )
    return critique


def _load_object(response: str) -> Mapping[str, Any]:
    # json.JSONDecodeError is a ValueError subclass
    payload = json.loads(strip_code_fences(response))
    if not isinstance(payload, Mapping):
        raise ValueError("expected a JSON object")
    return payload


def _generation_prompt(topic_content: str) -> str:
    return f"""You are a quiz generator for technical learning.

Based on the following learning content, generate ONE open-ended question that tests understanding.
You are allowed to deviate from the content *slightly* as long as it is on topic and the question is merely an extension of the same concept.

Content:
{topic_content}

About 50% of questions should be easy, 35% should be medium, and 15% should be hard.

Difficulty definitions:
- EASY: Tests recall and basic understanding. Asks about a single concept directly from
  the content. 1-2 key points to cover. Example: "What is X and why is it used?"
- MEDIUM: Tests ability to connect concepts or analyze a scenario. Combines 2-3 concepts
  from the content. 3-4 key points to cover. Example: "How does X solve problem Y?"
- HARD: Tests synthesis of multiple complex concepts, trade-off analysis, or problem-solving.
  Requires deep understanding of 3+ concepts and their interactions. 4+ key points to cover.
  Example: "Compare approaches X and Y for scenario Z, considering trade-offs."

Generate a question that:
1. Tests conceptual understanding (not just memorization)
2. Is open-ended (requires explanation, not just yes/no)
3. Has a clear difficulty level

Respond ONLY with valid JSON in this format:
{{
  "question": "Explain...",
  "difficulty": "easy|medium|hard",
  "expectedKeyPoints": ["point1", "point2", "point3"]
}}

JSON:"""


def _critique_prompt(
    question: str,
    expected_key_points: Sequence[str],
    accumulated_answer: str,
    attempt_number: int,
) -> str:
    points = "\n".join(
        f"{idx}. {point}"
        for idx, point in enumerate(expected_key_points, start=1)
    )
    return f"""You are evaluating a student's answer to a technical question.

Question: {question}

Expected key points to cover:
{points}

Student's answer (accumulated across attempts):
"{accumulated_answer}"

This is attempt #{attempt_number} (max {MAX_ATTEMPTS} attempts).

Evaluate the answer and respond with valid JSON:
{{
  "isCorrect": true/false,
  "feedback": "feedback text - see rules below",
  "hint": "if incorrect and attempts < {MAX_ATTEMPTS}, provide a specific hint for what to focus on"
}}

Rules for evaluation:
- A key point is "COVERED" if the student demonstrates understanding of the concept.
  They don't need exact terminology, but must show they understand the idea.
  Simply mentioning a term without explanation does NOT count as covered.
- If the answer covers 60%+ of key points with this standard, mark as correct.
  Example: If there are 5 key points and the student explains 3 clearly, that's 60% (pass).
  If they mention all 5 but only explain 2, that's 40% (fail).
- IMPORTANT: While the accumulated answer text is provided, for attempts 2-3 you must
  consider whether meaningful new understanding was added. If the student gives up
  (e.g. "I don't know") or adds nothing new, mark as INCORRECT regardless of
  accumulated text.

Example of a PASSING answer (covers core concepts without excessive detail):
Question: "Explain how implementing a CDN would solve slow load times, and describe
what happens differently in the request flow when a user in Australia accesses a
New York-based website."
PASSING answer: "Without a CDN, the Australian user's request must go all the way to
NY and back which is slow due to latency. With a CDN, the user's request first goes
to the CDN and checks the cache there. On first time, it will cache miss and have to
go to NY (slow) but then the 2nd time, as long as the cache is within its TTL, the
CDN will return to the user. The host server in NY is never hit in this scenario!"
Why this passes: It explains the problem, the solution, and the different request flow.
It doesn't need to explain DNS routing or network propagation delays unless those are
explicitly in the key points.

Rules for feedback:
- For CORRECT answers: Provide encouraging detailed feedback on what was good
- For INCORRECT answers (attempts 1-2): Set feedback to empty string "". Only provide a hint.
- For INCORRECT answers (attempt 3): Provide the complete explanation of the answer in feedback
- Hints should guide toward the MISSING key points needed to reach the 60% threshold.
  Do NOT ask for low-level details (like specific protocol messages) unless those details
  are themselves key points. Focus hints on concepts, not minutiae.

JSON:"""
