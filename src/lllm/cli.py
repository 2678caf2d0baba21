"""Unified ``lllm`` command: routes to the ask, quiz and config sub-CLIs."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Mapping, Optional, Sequence

PROG = "lllm"


@dataclass(frozen=True)
class CommandSpec:
    """One ``lllm`` subcommand backed by a module-level ``main(argv)``."""

    name: str
    summary: str
    module: str
    interactive: bool = False

    def run(self, argv: Sequence[str]) -> int:
        entry = getattr(import_module(self.module), "main")
        return _call_entry(entry, f"{PROG} {self.name}", argv)


COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        CommandSpec(
            name="ask",
            summary="Ask questions and save the answers as topic notes.",
            module="lllm.ask.cli",
            interactive=True,
        ),
        CommandSpec(
            name="quiz",
            summary="Test your knowledge with generated quizzes.",
            module="lllm.quiz.cli",
            interactive=True,
        ),
        CommandSpec(
            name="config",
            summary="Show or set the API key and manage settings.",
            module="lllm.config.cli",
        ),
    )
}


def format_command_table() -> str:
    """Return the aligned command listing shown by ``list`` and ``help``."""

    width = max(len(name) for name in COMMANDS)
    rows = ["Available commands:"]
    for spec in COMMANDS.values():
        marker = " (interactive)" if spec.interactive else ""
        rows.append(f"  {spec.name:<{width}}  {spec.summary}{marker}")
    return "\n".join(rows)


def format_usage() -> str:
    return "\n".join(
        [
            f"Usage: {PROG} <command> [args...]",
            "Life Long Learning Model - an AI-powered learning assistant.",
            f"Run `{PROG} list` for commands or "
            f"`{PROG} help <name>` for details.",
            "",
            format_command_table(),
        ]
    )


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(text + "\n")


def _version() -> str:
    try:
        return metadata.version(PROG)
    except metadata.PackageNotFoundError:
        return "unknown"


def _help(argv: Sequence[str]) -> int:
    if not argv:
        _out(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        _err(f"Unknown command '{argv[0]}'.")
        _err(format_command_table())
        return 2
    _out(f"{spec.name}: {spec.summary}")
    _out(f"Run `{PROG} {spec.name} --help` for command options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _err(format_usage())
        return 2

    command, rest = args[0], args[1:]
    if command in ("-h", "--help"):
        _out(format_usage())
        return 0
    if command in ("-V", "--version", "version"):
        _out(_version())
        return 0
    if command == "list":
        _out(format_command_table())
        return 0
    if command == "help":
        return _help(rest)

    spec = COMMANDS.get(command)
    if spec is None:
        _err(f"Unknown command '{command}'.")
        _err(format_usage())
        return 2
    return spec.run(rest)


def _call_entry(
    entry: Callable[[list[str]], object], prog: str, argv: Sequence[str]
) -> int:
    """Run ``entry(argv)`` with ``sys.argv`` set so argparse shows ``prog``."""

    saved = sys.argv
    sys.argv = [prog, *argv]
    try:
        result = entry(list(argv))
    except SystemExit as exc:
        return _exit_status(exc.code)
    finally:
        sys.argv = saved
    return result if isinstance(result, int) else 0


def _exit_status(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _err(str(code))
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
