"""Command-line entry points for credential and settings management."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from lllm.core.ai import API_KEY_ENV, ConfigurationError
from lllm.core.workspace import WorkspaceError, ensure_workspace

from . import settings as settings_mod
from .store import ConfigStore, mask_api_key, resolve_api_key


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lllm config",
        description="Manage the stored API key and lllm settings.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "show",
        help="Show the active API key (masked) and where it came from.",
    )

    set_parser = subparsers.add_parser(
        "set-api-key",
        help="Store an API key in the lllm config file.",
    )
    set_parser.add_argument("key", help="OpenAI API key to store.")

    subparsers.add_parser(
        "path",
        help="Print the workspace paths used by lllm.",
    )

    init_parser = subparsers.add_parser(
        "init",
        help="Write a settings.toml template into the workspace.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing settings file.",
    )
    return parser


def _handle_show(args: argparse.Namespace) -> int:  # noqa: ARG001
    layout = ensure_workspace()
    store = ConfigStore(layout.config_path)
    try:
        resolved = resolve_api_key(store)
    except ConfigurationError as exc:
        _print_error(str(exc))
        return 2
    if resolved is None:
        print("No API key configured")
        print("\nTo set your API key:")
        print("  1. Get your key from: https://platform.openai.com/api-keys")
        print("  2. Run: lllm config set-api-key <key>")
        print(f"     (or export {API_KEY_ENV} / add it to a .env file)")
        return 0
    print(f"API Key: {mask_api_key(resolved.value)}")
    print(f"Source: {resolved.source}")
    return 0


def _handle_set_api_key(args: argparse.Namespace) -> int:
    layout = ensure_workspace()
    store = ConfigStore(layout.config_path)
    try:
        store.set_api_key(args.key)
    except ConfigurationError as exc:
        _print_error(str(exc))
        return 2
    print(f"API key saved to {store.path}")
    return 0


def _handle_path(args: argparse.Namespace) -> int:  # noqa: ARG001
    layout = ensure_workspace()
    print(f"home: {layout.home}")
    print(f"  config: {layout.config_path}")
    print(f"  settings: {layout.settings_path}")
    print(f"  metadata: {layout.metadata_path}")
    for name, path in layout.items():
        print(f"  {name}: {path}")
    return 0


def _handle_init(args: argparse.Namespace) -> int:
    layout = ensure_workspace()
    target = layout.settings_path
    try:
        settings_mod.write_template(target, overwrite=args.force)
    except settings_mod.SettingsError as exc:
        _print_error(str(exc))
        return 2
    print(f"Wrote settings template to {target}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
    except SystemExit as exc:  # pragma: no cover - argparse already handles
        return int(exc.code)

    handlers = {
        "show": _handle_show,
        "set-api-key": _handle_set_api_key,
        "path": _handle_path,
        "init": _handle_init,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.error("Command not implemented yet.")
        return 2
    try:
        return handler(args)
    except WorkspaceError as exc:
        _print_error(str(exc))
        return 2


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
