"""Turn a command boundary into an extraction result."""

from __future__ import annotations

import logging

from cmdgrab.buffer import Boundary, BufferSnapshot
from cmdgrab.errors import NoCommand
from cmdgrab.models.extraction import Confidence, ExtractionResult
from cmdgrab.patterns import PromptCatalogue, detect_shell_family

log = logging.getLogger(__name__)


def read_lines(
    snapshot: BufferSnapshot, boundary: Boundary, catalogue: PromptCatalogue
) -> list[str]:
    """Return the logical lines between the boundary's start and end.

    A wrapped row continues the previous logical line with no separator. Any
    other row starts a new logical line with its continuation prompt removed.
    A trailing line-continuation backslash is kept, so joining the lines with
    a newline gives text the shell parses the same way.
    """
    start, end = boundary.start, boundary.end
    lines: list[str] = []
    for y in boundary.rows:
        row = snapshot.row(y)
        if row is None:
            continue
        first = start.column if y == start.row else 0
        last = end.column if y == end.row else None
        piece = row.text[first:last]
        if y == start.row or not lines:
            lines.append(piece)
        elif row.wrapped:
            lines[-1] += piece
        else:
            lines.append(catalogue.strip_continuation(piece))
    return [line.rstrip() for line in lines]


def build_result(
    snapshot: BufferSnapshot,
    boundary: Boundary,
    catalogue: PromptCatalogue,
    confidence: Confidence,
) -> ExtractionResult:
    """Assemble the command text inside ``boundary``.

    Raises:
        NoCommand: If the boundary is empty or inverted, or holds only blanks.
    """
    if not boundary.valid:
        raise NoCommand(boundary.start, boundary.end)

    command = "\n".join(read_lines(snapshot, boundary, catalogue)).strip()
    if not command:
        raise NoCommand(boundary.start, boundary.end)

    start_row = snapshot.row(boundary.start.row)
    prompt_text = start_row.text[: boundary.start.column] if start_row is not None else ""

    log.debug(
        "extracted %r (%s confidence)",
        command[:50] + ("..." if len(command) > 50 else ""),
        confidence,
    )
    return ExtractionResult(
        command=command,
        multi_line="\n" in command,
        start_row=boundary.start.row,
        end_row=boundary.end.row,
        confidence=confidence,
        shell=detect_shell_family(prompt_text),
    )
