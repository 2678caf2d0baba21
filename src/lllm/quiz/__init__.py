"""Quiz mode: generated questions graded by the model."""

from .generator import (  # noqa: F401
    MAX_ATTEMPTS,
    Critique,
    CritiqueError,
    GenerationError,
    ParseError,
    QuizQuestion,
    critique_answer,
    generate_question,
    strip_code_fences,
)
from .session import (  # noqa: F401
    QuizScore,
    QuizSession,
    ValidationError,
    parse_menu_choice,
    select_topics,
)

__all__ = [
    "MAX_ATTEMPTS",
    "Critique",
    "CritiqueError",
    "GenerationError",
    "ParseError",
    "QuizQuestion",
    "critique_answer",
    "generate_question",
    "strip_code_fences",
    "QuizScore",
    "QuizSession",
    "ValidationError",
    "parse_menu_choice",
    "select_topics",
]
