"""CLI entry point for Ask mode."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from rich.console import Console

from lllm.config.settings import SettingsError
from lllm.core.ai import ConfigurationError
from lllm.core.workspace import WorkspaceError
from lllm.runtime import prepare_runtime

from .session import AskSession


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lllm ask",
        description=(
            "Ask questions interactively; answers are saved per topic for "
            "later quizzes."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Echo debug logs to stderr.",
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Console | None = None,
    client: object | None = None,
) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:  # pragma: no cover - argparse already handles
        return int(exc.code)

    try:
        runtime = prepare_runtime(verbose=args.verbose, client=client)
    except (WorkspaceError, SettingsError) as exc:
        _print_error(str(exc))
        return 2

    chat = runtime.settings.chat
    session = AskSession(
        gateway=runtime.gateway,
        store=runtime.store,
        console=console or Console(),
        temperature=chat.temperature,
        max_tokens=chat.max_tokens,
        logger=runtime.logger.getChild("ask"),
    )
    try:
        session.run()
    except ConfigurationError as exc:
        runtime.logger.error("Missing credential", extra={"error": str(exc)})
        _print_error(str(exc))
        return 2
    return 0


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
