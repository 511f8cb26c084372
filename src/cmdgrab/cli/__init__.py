"""Command-line interface for cmdgrab."""

import sys

from cmdgrab.cli import configure, scan, shell


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] == "configure":
        return configure.run(args[1:])
    if args and args[0] == "scan":
        return scan.run(args[1:])
    if args and args[0] == "shell":
        args = args[1:]
    return shell.run(args)


def entrypoint() -> None:
    raise SystemExit(main())
