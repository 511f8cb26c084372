"""`cmdgrab scan` command implementation."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import pyte

from cmdgrab.config import load_config
from cmdgrab.extractor import CommandExtractor
from cmdgrab.models import CmdgrabConfig, ExtractionResult
from cmdgrab.shell.screen import ScreenSnapshot, TrackingScreen

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build parser for the scan command."""
    parser = argparse.ArgumentParser(
        prog="cmdgrab scan",
        description="Print the command being typed at the end of a recorded terminal session",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("file", type=Path, help="Typescript file, as written by script(1)")
    parser.add_argument("--columns", type=int, default=80, help="Terminal width (default: 80)")
    parser.add_argument("--rows", type=int, default=24, help="Terminal height (default: 24)")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full extraction result as JSON",
    )
    return parser


def replay(
    data: bytes,
    columns: int = 80,
    rows: int = 24,
    config: CmdgrabConfig | None = None,
) -> ExtractionResult | None:
    """Render ``data`` on a virtual screen and extract the command at its cursor.

    Nothing can be sent to a recording, so only the display is read.
    """
    screen = TrackingScreen(columns, rows)
    pyte.ByteStream(screen).feed(data)
    log.debug("replayed %d bytes; cursor at (%d, %d)", len(data), screen.cursor.y, screen.cursor.x)
    extractor = CommandExtractor(config)
    return asyncio.run(extractor.extract("scan", ScreenSnapshot(screen)))


def run(argv: list[str]) -> int:
    """Execute the scan command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    if args.columns < 1 or args.rows < 1:
        print("Error: --columns and --rows must be positive", file=sys.stderr)
        return 2

    try:
        data = args.file.read_bytes()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = replay(data, args.columns, args.rows, load_config())
    if result is None:
        print("No command found at the cursor", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(result.command)
    return 0
