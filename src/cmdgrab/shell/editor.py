"""Round trip of a command through the user's editor."""

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import tempfile

from cmdgrab.errors import EditorError
from cmdgrab.models import ExtractionResult

log = logging.getLogger(__name__)

FALLBACK_EDITOR = "vi"

KILL_LINE = b"\x05\x15"  # Ctrl-E, Ctrl-U
INTERRUPT = b"\x03"  # Ctrl-C
PASTE_START = b"\x1b[200~"
PASTE_END = b"\x1b[201~"

_CONTINUED_NEWLINE = re.compile(r"[ \t]*\\\n\s*")


def resolve_editor(editor: str | None = None) -> list[str]:
    """Return the editor command line: ``editor``, then $VISUAL, $EDITOR, vi."""
    command = editor or os.environ.get("VISUAL") or os.environ.get("EDITOR") or FALLBACK_EDITOR
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise EditorError(f"invalid editor command {command!r}: {e}") from e
    if not argv:
        raise EditorError("editor command is empty")
    return argv


def edit_text(text: str, editor: str | None = None) -> str | None:
    """Open ``text`` in an editor and return the saved result.

    Returns ``None`` when the editor exits non-zero or the file is left
    empty, so the caller keeps the original command.

    Raises:
        EditorError: If the editor command is invalid or cannot be run.
    """
    argv = resolve_editor(editor)
    with tempfile.NamedTemporaryFile(
        mode="w", prefix="cmdgrab_", suffix=".sh", delete=False, encoding="utf-8"
    ) as tmp_file:
        tmp_file.write(text + "\n")
        path = tmp_file.name

    try:
        log.debug("running editor %s on %s", argv, path)
        try:
            completed = subprocess.run([*argv, path], check=False)
        except OSError as e:
            raise EditorError(f"could not run editor {argv[0]!r}: {e}") from e
        if completed.returncode != 0:
            log.debug("editor exited with %d; keeping original command", completed.returncode)
            return None
        with open(path, encoding="utf-8") as f:
            edited = f.read().rstrip("\n")
    finally:
        os.unlink(path)

    if not edited.strip():
        return None
    return edited


def clear_sequence(result: ExtractionResult) -> bytes:
    """Bytes that make the shell discard the command it is holding.

    A single row is killed in place. A multi-row command may span several
    line editor buffers, so it is interrupted instead and the shell draws a
    fresh prompt.
    """
    if result.multi_line:
        return INTERRUPT
    return KILL_LINE


def insert_payload(command: str, bracketed_paste: bool = False) -> bytes:
    """Bytes that type ``command`` into the line editor without running it.

    Without bracketed paste a newline would execute the command, so
    continued lines are rejoined and remaining newlines become spaces.
    """
    if "\n" not in command:
        return command.encode()
    if bracketed_paste:
        return PASTE_START + command.encode() + PASTE_END
    flattened = _CONTINUED_NEWLINE.sub(" ", command)
    return flattened.replace("\n", " ").encode()
