"""Per-topic markdown transcripts plus the JSON metadata index.

Layout inside the workspace::

    <home>/metadata.json        {"topics": {<key>: TopicInfo}}
    <home>/topics/<key>.md      append-only Q&A transcript

The index is the source of truth for question counts. Every call re-reads the
index from disk; nothing is cached between calls.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "TopicStoreError",
    "NotFoundError",
    "TopicInfo",
    "TopicStore",
    "normalize_topic",
    "topic_key",
]


_SUFFIXES = ("css", "js", "ts")
_MIN_BASE_LENGTH = 3
_WHITESPACE = re.compile(r"\s+")


class TopicStoreError(RuntimeError):
    """Raised when the topic index or transcripts cannot be read or written."""


class NotFoundError(TopicStoreError):
    """Raised when a topic key or its transcript file does not exist."""


@dataclass
class TopicInfo:
    """Index entry describing one topic transcript."""

    display_name: str
    file_name: str
    created_at: str
    last_updated: str
    question_count: int = 0

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "displayName": self.display_name,
            "fileName": self.file_name,
            "createdAt": self.created_at,
            "lastUpdated": self.last_updated,
            "questionCount": self.question_count,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TopicInfo":
        try:
            return cls(
                display_name=str(payload["displayName"]),
                file_name=str(payload["fileName"]),
                created_at=str(payload["createdAt"]),
                last_updated=str(payload["lastUpdated"]),
                question_count=int(payload["questionCount"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TopicStoreError(
                f"Topic metadata entry is malformed: {exc}"
            ) from exc


def normalize_topic(raw: str) -> str:
    """Lowercase, drop all whitespace and strip one known suffix from ``raw``.

    ``"TailwindCSS"`` becomes ``"tailwind"``; ``"Express"`` is left alone
    because ``"ss"`` is not a recognised suffix; ``"Machine Learning"``
    becomes ``"machinelearning"``. Only the first matching suffix is removed,
    and only when at least three characters of the name remain.
    """

    normalized = _WHITESPACE.sub("", raw.lower())
    for suffix in _SUFFIXES:
        if normalized.endswith(suffix) and len(normalized) > len(suffix):
            base = normalized[: -len(suffix)]
            if len(base) >= _MIN_BASE_LENGTH:
                return base
    return normalized


def topic_key(normalized: str) -> str:
    """Hyphenate ``normalized`` into the index key / file stem."""

    return _WHITESPACE.sub("-", normalized.strip().lower())


class TopicStore:
    """Read and append topic transcripts under a workspace."""

    def __init__(
        self,
        *,
        metadata_path: Path,
        topics_dir: Path,
        logger: logging.Logger | None = None,
    ) -> None:
        self._metadata_path = metadata_path
        self._topics_dir = topics_dir
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_layout(
        cls, layout: Any, *, logger: logging.Logger | None = None
    ) -> "TopicStore":
        """Build a store for a :class:`~lllm.core.workspace.WorkspaceLayout`."""

        return cls(
            metadata_path=layout.metadata_path,
            topics_dir=layout.path_for("topics"),
            logger=logger,
        )

    @property
    def topics_dir(self) -> Path:
        return self._topics_dir

    def load_metadata(self) -> dict[str, TopicInfo]:
        """Return the index, creating an empty one on first use."""

        self._ensure_dirs()
        if not self._metadata_path.exists():
            self.save_metadata({})
            return {}
        try:
            payload = json.loads(
                self._metadata_path.read_text(encoding="utf-8")
            )
        except (OSError, json.JSONDecodeError) as exc:
            raise TopicStoreError(
                f"Failed to read topic index {self._metadata_path}: {exc}"
            ) from exc
        topics = payload.get("topics") if isinstance(payload, Mapping) else None
        if not isinstance(topics, Mapping):
            raise TopicStoreError(
                "Topic index must be an object with a 'topics' mapping: "
                f"{self._metadata_path}"
            )
        index: dict[str, TopicInfo] = {}
        for key, entry in topics.items():
            if not isinstance(entry, Mapping):
                raise TopicStoreError(
                    f"Topic metadata entry '{key}' must be an object."
                )
            index[str(key)] = TopicInfo.from_dict(entry)
        return index

    def save_metadata(self, index: Mapping[str, TopicInfo]) -> None:
        payload = {
            "topics": {key: info.to_dict() for key, info in index.items()}
        }
        _atomic_write_json(self._metadata_path, payload)

    def save_question_answer(
        self, topic: str, question: str, answer: str
    ) -> TopicInfo:
        """Record one Q&A under ``topic`` and return the updated entry.

        The index is persisted before the transcript is appended.
        """

        normalized = normalize_topic(topic)
        if not normalized:
            raise TopicStoreError("Topic name cannot be empty.")
        key = topic_key(normalized)
        file_name = f"{key}.md"

        index = self.load_metadata()
        now = _timestamp()
        info = index.get(key)
        if info is None:
            info = TopicInfo(
                display_name=normalized,
                file_name=file_name,
                created_at=now,
                last_updated=now,
            )
            index[key] = info
        info.last_updated = now
        info.question_count += 1
        self.save_metadata(index)

        path = self._topics_dir / info.file_name
        entry = _format_entry(question, answer, asked_on=now[:10])
        try:
            if not path.exists():
                path.write_text(f"# {normalized}\n\n", encoding="utf-8")
            with path.open("a", encoding="utf-8") as fh:
                fh.write(entry)
        except OSError as exc:
            raise TopicStoreError(
                f"Failed to append to transcript {path}: {exc}"
            ) from exc

        self._logger.info(
            "Saved question",
            extra={"topic": key, "question_count": info.question_count},
        )
        return info

    def list_topics(self) -> list[str]:
        """Return every topic key in index order."""

        return list(self.load_metadata())

    def get_topic_info(self, topic: str) -> TopicInfo:
        index = self.load_metadata()
        key = topic_key(topic)
        info = index.get(key)
        if info is None:
            raise NotFoundError(f'Topic "{topic}" not found')
        return info

    def get_topic_content(self, topic: str) -> str:
        """Return the full transcript for ``topic``."""

        info = self.get_topic_info(topic)
        path = self._topics_dir / info.file_name
        if not path.is_file():
            raise NotFoundError(f"Topic file not found: {info.file_name}")
        return path.read_text(encoding="utf-8")

    def _ensure_dirs(self) -> None:
        self._metadata_path.parent.mkdir(parents=True, exist_ok=True)
        self._topics_dir.mkdir(parents=True, exist_ok=True)


def _format_entry(question: str, answer: str, *, asked_on: str) -> str:
    return f"## {question}\n*Asked: {asked_on}*\n\n{answer}\n\n---\n\n"


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
    )
    try:
        json.dump(payload, handle, indent=2)
        handle.flush()
        os.fsync(handle.fileno())
    finally:
        handle.close()
    os.replace(handle.name, path)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()
