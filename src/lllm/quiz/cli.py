"""CLI entry point for Quiz mode."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Sequence

from rich.console import Console

from lllm.config.settings import SettingsError
from lllm.core.ai import ConfigurationError
from lllm.core.chat import UpstreamError
from lllm.core.workspace import WorkspaceError
from lllm.runtime import prepare_runtime
from lllm.topics.store import TopicStoreError

from .generator import ParseError
from .session import QuizSession, ValidationError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lllm quiz",
        description="Quiz yourself on topics recorded in Ask mode.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for random topic selection (useful for repeatable runs).",
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

    out = console or Console()
    session = QuizSession(
        gateway=runtime.gateway,
        store=runtime.store,
        console=out,
        rng=random.Random(args.seed),
    )
    try:
        session.run()
    except ValidationError as exc:
        out.print(str(exc))
        return 2
    except ConfigurationError as exc:
        runtime.logger.error("Missing credential", extra={"error": str(exc)})
        _print_error(str(exc))
        return 2
    except (UpstreamError, ParseError, TopicStoreError) as exc:
        runtime.logger.error("Quiz session failed", extra={"error": str(exc)})
        _print_error(f"Error: {exc}")
        return 1
    return 0


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
