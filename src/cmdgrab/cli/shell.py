"""`cmdgrab shell` command implementation."""

import argparse
import logging

from cmdgrab import __version__
from cmdgrab.config import CONFIG_DIR, LOG_FILE
from cmdgrab.shell import shell_loop


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the shell wrapper."""
    parser = argparse.ArgumentParser(
        prog="cmdgrab",
        description=(
            "Run your shell with a hotkey that opens the command being typed in your editor. "
            "Subcommands: shell (default), scan, configure."
        ),
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help=f"Enable debug logging (written to {LOG_FILE})",
    )
    parser.add_argument("--shell", help="Shell to run (default: $SHELL)")
    return parser


def run(argv: list[str]) -> int:
    """Execute the shell wrapper."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # The terminal is in raw mode while the shell runs; keep log output off it.
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    logging.basicConfig(
        filename=LOG_FILE,
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    return shell_loop(args.shell)
