"""`cmdgrab configure` command implementation."""

import argparse
import logging
import re
import sys

from cmdgrab.config import CONFIG_FILE, load_config, parse_hotkey, save_config
from cmdgrab.errors import ConfigError
from cmdgrab.models import CmdgrabConfig


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the configure command."""
    parser = argparse.ArgumentParser(
        prog="cmdgrab configure",
        description="Configure the cmdgrab hotkey, editor and prompt detection",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--prompt-pattern",
        help="Regex matching your prompt, tried before the built-in patterns",
    )
    parser.add_argument(
        "--clear-prompt-pattern",
        action="store_true",
        help="Remove the stored prompt pattern",
    )
    execute_group = parser.add_mutually_exclusive_group()
    execute_group.add_argument(
        "--execute",
        action="store_true",
        help="Run the edited command as soon as it is inserted",
    )
    execute_group.add_argument(
        "--no-execute",
        action="store_true",
        help="Insert the edited command without running it",
    )
    parser.add_argument("--hotkey", help="Key that opens the editor (example: ctrl-x)")
    parser.add_argument("--editor", help="Editor command line (example: 'code --wait')")
    return parser


def apply_options(config: CmdgrabConfig, args: argparse.Namespace) -> CmdgrabConfig:
    """Return a copy of ``config`` with the command-line options applied.

    Raises:
        ConfigError: If the prompt pattern or hotkey is unusable.
    """
    updates: dict[str, object] = {}
    if args.clear_prompt_pattern:
        updates["prompt_pattern"] = None
    elif args.prompt_pattern is not None:
        try:
            re.compile(args.prompt_pattern)
        except re.error as e:
            raise ConfigError(f"invalid prompt pattern {args.prompt_pattern!r}: {e}") from e
        updates["prompt_pattern"] = args.prompt_pattern
    if args.execute:
        updates["execute_immediately"] = True
    if args.no_execute:
        updates["execute_immediately"] = False
    if args.hotkey is not None:
        parse_hotkey(args.hotkey)
        updates["hotkey"] = args.hotkey
    if args.editor is not None:
        updates["editor"] = args.editor or None
    return config.model_copy(update=updates)


def run(argv: list[str]) -> int:
    """Execute the configure command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    if args.clear_prompt_pattern and args.prompt_pattern is not None:
        print(
            "Error: --prompt-pattern and --clear-prompt-pattern cannot be used together",
            file=sys.stderr,
        )
        return 2

    existing = load_config()
    try:
        updated = apply_options(existing, args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if updated != existing:
        save_config(updated)
        print(f"\nConfiguration saved to {CONFIG_FILE}")
    else:
        print(f"\nConfiguration in {CONFIG_FILE}")
    print(f"  hotkey: {updated.hotkey}")
    print(f"  editor: {updated.editor or '(from $VISUAL / $EDITOR)'}")
    print(f"  prompt_pattern: {updated.prompt_pattern or '(built-in patterns)'}")
    print("  execute_immediately: " + ("true" if updated.execute_immediately else "false"))
    print("")
    return 0
