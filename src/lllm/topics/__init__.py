"""Topic transcripts and topic classification."""

from .classifier import (  # noqa: F401
    ClarificationMenu,
    detect_topic,
    parse_clarification,
)
from .store import (  # noqa: F401
    NotFoundError,
    TopicInfo,
    TopicStore,
    TopicStoreError,
    normalize_topic,
    topic_key,
)

__all__ = [
    "ClarificationMenu",
    "detect_topic",
    "parse_clarification",
    "NotFoundError",
    "TopicInfo",
    "TopicStore",
    "TopicStoreError",
    "normalize_topic",
    "topic_key",
]
