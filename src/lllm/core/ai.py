"""Shared AI helper utilities."""

from __future__ import annotations

from openai import OpenAI

__all__ = ["API_KEY_ENV", "ConfigurationError", "load_client"]


API_KEY_ENV = "OPENAI_API_KEY"


class ConfigurationError(RuntimeError):
    """Raised when no usable API credential is available."""


def load_client(api_key: str | None) -> OpenAI:
    """Initialize an OpenAI client for ``api_key``."""
    if not api_key or not api_key.strip():
        raise ConfigurationError(
            "No API key configured. Run `lllm config set-api-key <key>` or "
            f"set {API_KEY_ENV} in the environment or a .env file."
        )
    return OpenAI(api_key=api_key.strip())
