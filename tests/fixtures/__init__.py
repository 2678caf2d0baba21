"""Shared testing fixtures and stubs for the lllm test suite."""

from .console import RichScriptConsole, StubConsole  # noqa: F401
from .openai import OpenAIStub, StreamStub, chunk, completion  # noqa: F401

__all__ = [
    "OpenAIStub",
    "RichScriptConsole",
    "StreamStub",
    "StubConsole",
    "chunk",
    "completion",
]
