"""Extend a command boundary backward over line-continuation rows."""

from __future__ import annotations

import logging

from cmdgrab.buffer import Boundary, BufferSnapshot, CursorPosition
from cmdgrab.patterns import DEFAULT_CATALOGUE, PromptCatalogue

log = logging.getLogger(__name__)

LINE_CONTINUATION = "\\"


def expand_boundary(
    snapshot: BufferSnapshot,
    boundary: Boundary,
    catalogue: PromptCatalogue = DEFAULT_CATALOGUE,
    max_scan_rows: int = 50,
) -> Boundary:
    """Move the start of ``boundary`` up while the line above ends with a backslash.

    Each absorbed line starts where the catalogue says typing begins on its
    first row: after a main prompt, after a continuation prompt, or at
    column 0.
    """
    start = boundary.start
    first = snapshot.row(start.row)
    if first is None or first.wrapped:
        return boundary

    floor = max(0, start.row - max_scan_rows)
    y = start.row - 1
    while y >= floor:
        row = snapshot.row(y)
        if row is None or not row.slice().endswith(LINE_CONTINUATION):
            break
        head = _logical_head(snapshot, y, floor)
        head_row = snapshot.row(head)
        column = catalogue.command_start(head_row.text) if head_row is not None else None
        start = CursorPosition(row=head, column=column or 0)
        y = head - 1

    if start != boundary.start:
        log.debug("expanded command start from %s to %s", boundary.start, start)
    return Boundary(start=start, end=boundary.end)


def _logical_head(snapshot: BufferSnapshot, y: int, floor: int) -> int:
    """Return the first row of the logical line that ``y`` belongs to."""
    while y > floor:
        row = snapshot.row(y)
        if row is None or not row.wrapped:
            break
        y -= 1
    return y
