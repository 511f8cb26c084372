"""Passive extraction by reading the display.

Used when probing is unavailable or fails. Nothing is sent to the shell; the
command start is inferred from prompt glyphs, continuation prompts and wrap
flags, or taken from a live prompt marker when one is available.
"""

from __future__ import annotations

import logging
import re

from cmdgrab.buffer import Boundary, BufferSnapshot, CursorPosition
from cmdgrab.errors import NoCommand
from cmdgrab.models.extraction import Confidence
from cmdgrab.patterns import DEFAULT_CATALOGUE, PromptCatalogue, looks_like_output
from cmdgrab.tracker import PromptMarker

log = logging.getLogger(__name__)

# Rows indented this far are treated as output rather than a glyph-less prompt.
MAX_COMMAND_INDENT = 4

# Text far to the right of the cursor is a right-side prompt, not typed input.
_RIGHT_PROMPT_GAP = re.compile(r"^\s{4,}\S")


class HeuristicScanStrategy:
    """Find the command around the cursor by scanning rows up and down."""

    name = "heuristic"

    def __init__(
        self, catalogue: PromptCatalogue = DEFAULT_CATALOGUE, max_scan_rows: int = 50
    ) -> None:
        self.catalogue = catalogue
        self.max_scan_rows = max_scan_rows

    def locate(
        self,
        snapshot: BufferSnapshot,
        cursor: CursorPosition,
        seed: PromptMarker | None = None,
    ) -> tuple[Boundary, Confidence]:
        """Return the command boundary around ``cursor`` and how it was found.

        Raises:
            NoCommand: If the cursor sits at column 0 and no marker seeds the start.
            InvalidMarker: If ``seed`` was disposed by the host.
        """
        start: CursorPosition | None = None
        confidence: Confidence = "medium"
        if seed is not None:
            position = seed.position
            if position.row <= cursor.row and cursor.row - position.row <= self.max_scan_rows:
                log.debug("using prompt marker at %s", position)
                start, confidence = position, "high"

        if start is None:
            if cursor.column == 0:
                raise NoCommand(cursor, cursor)
            start, confidence = self._scan_backward(snapshot, cursor)

        return Boundary(start=start, end=self._scan_forward(snapshot, cursor)), confidence

    def _scan_backward(
        self, snapshot: BufferSnapshot, cursor: CursorPosition
    ) -> tuple[CursorPosition, Confidence]:
        floor = max(0, cursor.row - self.max_scan_rows)
        y = cursor.row
        cursor_head: int | None = None
        below: int | None = None

        while y >= floor:
            head = self._logical_head(snapshot, y, floor)
            if head is None:
                break
            if cursor_head is None:
                cursor_head = head
            text = snapshot.row(head).text

            if self.catalogue.detect_continuation(text):
                log.debug("row %d is a continuation prompt, continuing up", head)
            else:
                match = self.catalogue.detect_main_prompt(text)
                if match:
                    log.debug("prompt at row %d, command starts at column %d", head, match.end)
                    return CursorPosition(row=head, column=match.end), "medium"
                if self._could_be_command(text):
                    log.debug("row %d has no prompt glyph but reads like a command", head)
                    return CursorPosition(row=head, column=0), "low"
                if head < cursor_head and below is not None:
                    log.debug("row %d looks like output, command starts at row %d", head, below)
                    return CursorPosition(row=below, column=0), "low"

            below = head
            y = head - 1

        fallback = below if below is not None else cursor.row
        log.debug("no prompt within %d rows, starting at row %d", self.max_scan_rows, fallback)
        return CursorPosition(row=fallback, column=0), "low"

    def _scan_forward(self, snapshot: BufferSnapshot, cursor: CursorPosition) -> CursorPosition:
        end = cursor
        row = snapshot.row(cursor.row)
        if row is not None:
            tail = row.text[cursor.column:]
            if tail.strip() and not _RIGHT_PROMPT_GAP.match(tail):
                end = CursorPosition(row=cursor.row, column=len(row.slice()))

        last = min(snapshot.length - 1, cursor.row + self.max_scan_rows)
        for y in range(cursor.row + 1, last + 1):
            row = snapshot.row(y)
            if row is None:
                break
            # Blank separators can sit inside multi-row history entries.
            if row.blank:
                continue
            if (
                not row.wrapped
                and not self.catalogue.detect_continuation(row.text)
                and self.catalogue.detect_main_prompt(row.text)
            ):
                break
            end = CursorPosition(row=y, column=len(row.slice()))
        return end

    def _logical_head(self, snapshot: BufferSnapshot, y: int, floor: int) -> int | None:
        row = snapshot.row(y)
        if row is None:
            return None
        while row.wrapped and y > 0:
            previous = snapshot.row(y - 1)
            if previous is None or y - 1 < floor:
                break
            y, row = y - 1, previous
        return y

    def _could_be_command(self, text: str) -> bool:
        if not text.strip():
            return False
        indent = len(text) - len(text.lstrip())
        return indent < MAX_COMMAND_INDENT and not looks_like_output(text)
