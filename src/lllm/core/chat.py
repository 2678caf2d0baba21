"""Chat gateway over the OpenAI chat completions API.

The gateway is the only component that talks to the model. It supports two
modes:

* non-streaming: :meth:`ChatGateway.chat` returns the full response text;
* streaming: :meth:`ChatGateway.stream` returns an ordered iterator of
  :class:`StreamEvent` objects (text chunks followed by exactly one terminal
  ``complete`` or ``error`` event). :meth:`ChatGateway.chat` with
  ``ChatOptions(stream=True, handler=...)`` drives callback handlers from the
  same iterator.

The credential is resolved lazily on the first call, so constructing a gateway
never fails for lack of an API key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Literal, Mapping, Sequence

from openai import OpenAIError

from .ai import ConfigurationError, load_client

__all__ = [
    "DEFAULT_MODEL",
    "ConfigurationError",
    "UpstreamError",
    "Message",
    "StreamHandler",
    "ChatOptions",
    "StreamEvent",
    "ChatGateway",
]


DEFAULT_MODEL = "gpt-4o-mini"

Role = Literal["user", "assistant"]
EventKind = Literal["text", "complete", "error"]
KeyProvider = Callable[[], str | None]


class UpstreamError(RuntimeError):
    """Raised when the chat service or its transport fails."""


@dataclass(frozen=True)
class Message:
    """A single conversation turn."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class StreamHandler:
    """Callbacks invoked while a streamed response arrives."""

    on_text: Callable[[str], None] | None = None
    on_complete: Callable[[str], None] | None = None
    on_error: Callable[[Exception], None] | None = None


@dataclass(frozen=True)
class ChatOptions:
    """Per-call request options."""

    stream: bool = False
    temperature: float = 0.7
    max_tokens: int = 4096
    system: str | None = None
    handler: StreamHandler | None = None


@dataclass(frozen=True)
class StreamEvent:
    """One event of a streamed response."""

    kind: EventKind
    text: str = ""
    error: UpstreamError | None = None


class ChatGateway:
    """Stateless wrapper around a chat completions client."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        key_provider: KeyProvider | None = None,
        client: Any | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._model = model
        self._key_provider = key_provider
        self._client = client
        self._logger = logger or logging.getLogger(__name__)

    @property
    def model(self) -> str:
        return self._model

    def chat(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> str:
        """Send ``messages`` and return the assistant's full reply."""

        opts = options or ChatOptions()
        if opts.stream:
            return self._drive_handler(messages, opts)

        client = self._ensure_client()
        request = self._build_request(messages, opts)
        self._log_request(request, streaming=False)
        try:
            response = client.chat.completions.create(**request)
        except OpenAIError as exc:
            self._logger.error(
                "Chat request failed", extra={"error": str(exc)}
            )
            raise UpstreamError(f"Chat API error: {exc}") from exc
        text = _first_text(response)
        self._logger.debug(
            "Chat response received", extra={"characters": len(text)}
        )
        return text

    def stream(
        self,
        messages: Sequence[Message],
        options: ChatOptions | None = None,
    ) -> Iterator[StreamEvent]:
        """Start a streamed request and return its event iterator.

        Raises :class:`ConfigurationError` immediately when no credential is
        available. Transport failures surface as a terminal ``error`` event.
        Closing the returned iterator early abandons the response.
        """

        opts = options or ChatOptions(stream=True)
        client = self._ensure_client()
        request = self._build_request(messages, opts)
        request["stream"] = True
        self._log_request(request, streaming=True)
        return self._iter_events(client, request)

    def _iter_events(
        self, client: Any, request: Mapping[str, Any]
    ) -> Iterator[StreamEvent]:
        pieces: list[str] = []
        try:
            response = client.chat.completions.create(**request)
            try:
                for chunk in response:
                    text = _delta_text(chunk)
                    if not text:
                        continue
                    pieces.append(text)
                    yield StreamEvent("text", text=text)
            finally:
                close = getattr(response, "close", None)
                if callable(close):
                    close()
        except OpenAIError as exc:
            self._logger.error(
                "Streamed chat request failed",
                extra={"error": str(exc), "chunks": len(pieces)},
            )
            error = UpstreamError(f"Chat API error: {exc}")
            error.__cause__ = exc
            yield StreamEvent("error", error=error)
            return
        full_text = "".join(pieces)
        self._logger.debug(
            "Streamed chat response complete",
            extra={"characters": len(full_text), "chunks": len(pieces)},
        )
        yield StreamEvent("complete", text=full_text)

    def _drive_handler(
        self, messages: Sequence[Message], opts: ChatOptions
    ) -> str:
        handler = opts.handler or StreamHandler()
        for event in self.stream(messages, opts):
            if event.kind == "text":
                if handler.on_text is not None:
                    handler.on_text(event.text)
            elif event.kind == "complete":
                if handler.on_complete is not None:
                    handler.on_complete(event.text)
                return event.text
            else:
                assert event.error is not None
                if handler.on_error is not None:
                    handler.on_error(event.error)
                raise event.error
        raise UpstreamError("Stream ended without a completion event.")

    def _ensure_client(self) -> Any:
        if self._client is None:
            api_key = self._key_provider() if self._key_provider else None
            self._client = load_client(api_key)
        return self._client

    def _build_request(
        self, messages: Sequence[Message], opts: ChatOptions
    ) -> dict[str, Any]:
        payload: list[dict[str, str]] = []
        if opts.system:
            payload.append({"role": "system", "content": opts.system})
        payload.extend(message.to_dict() for message in messages)
        return {
            "model": self._model,
            "messages": payload,
            "temperature": opts.temperature,
            "max_tokens": opts.max_tokens,
        }

    def _log_request(
        self, request: Mapping[str, Any], *, streaming: bool
    ) -> None:
        self._logger.debug(
            "Sending chat request",
            extra={
                "model": request["model"],
                "streaming": streaming,
                "message_count": len(request["messages"]),
                "temperature": request["temperature"],
                "max_tokens": request["max_tokens"],
            },
        )


def _first_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content or ""


def _delta_text(chunk: Any) -> str:
    choices = getattr(chunk, "choices", None) or []
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    content = getattr(delta, "content", None)
    return content or ""
