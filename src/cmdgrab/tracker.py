"""Prompt marker tracking.

Remembers where prompts were drawn so a later extraction can start from a
known position instead of guessing. Positions are held by persistent markers
from the host display, which follow their row through scrolling and report
disposal when the row leaves history.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cmdgrab.buffer import CursorPosition, MarkerHandle, cursor_position
from cmdgrab.errors import InvalidMarker
from cmdgrab.models.config import CmdgrabConfig
from cmdgrab.patterns import DEFAULT_CATALOGUE, PromptCatalogue, looks_like_prompt
from cmdgrab.timers import TimerSlots

if TYPE_CHECKING:
    from cmdgrab.session import SessionState

log = logging.getLogger(__name__)


@dataclass(eq=False)
class PromptMarker:
    """A recognized prompt: the marked row and the column where typing starts."""

    handle: MarkerHandle
    command_start_column: int
    created_at: float = field(default_factory=time.monotonic)

    @property
    def disposed(self) -> bool:
        return self.handle.is_disposed

    @property
    def row(self) -> int:
        """Current row of the marker.

        Raises:
            InvalidMarker: If the host has disposed the marker.
        """
        if self.handle.is_disposed:
            raise InvalidMarker(f"marker for column {self.command_start_column} is disposed")
        return self.handle.line

    @property
    def position(self) -> CursorPosition:
        return CursorPosition(row=self.row, column=self.command_start_column)

    def dispose(self) -> None:
        if not self.handle.is_disposed:
            self.handle.dispose()


class MarkerSet:
    """Capacity-bounded, insertion-ordered prompt markers for one session.

    No two live markers share a row, and ``current`` is either a live member
    of the set or ``None``.
    """

    def __init__(self, capacity: int = 100) -> None:
        self.capacity = capacity
        self._markers: list[PromptMarker] = []
        self._current: PromptMarker | None = None

    def __len__(self) -> int:
        return len(self._markers)

    def add(self, marker: PromptMarker) -> PromptMarker:
        """Add ``marker`` and make it current; return the marker kept in the set.

        If a live marker already sits on the same row, that marker takes the
        new column and timestamp and the incoming handle is disposed.
        """
        line = marker.handle.line
        for existing in self._markers:
            if not existing.disposed and existing.handle.line == line:
                existing.command_start_column = marker.command_start_column
                existing.created_at = marker.created_at
                marker.dispose()
                self._current = existing
                return existing

        self._markers.append(marker)
        while len(self._markers) > self.capacity:
            evicted = self._markers.pop(0)
            evicted.dispose()
            log.debug("evicted prompt marker at column %d", evicted.command_start_column)
        self._current = marker
        return marker

    def current(self) -> PromptMarker | None:
        """Return the most recent live marker, pruning disposed ones on the way."""
        if self._current is not None and self._current.disposed:
            log.debug("current prompt marker was disposed; pruning")
            self.sweep()
        return self._current

    def live(self) -> list[PromptMarker]:
        return [marker for marker in self._markers if not marker.disposed]

    def sweep(self) -> int:
        """Drop disposed markers and repoint ``current``; return how many were dropped."""
        valid = self.live()
        removed = len(self._markers) - len(valid)
        if removed:
            log.debug("cleaned up %d disposed prompt markers", removed)
        self._markers = valid
        if self._current is not None and (self._current.disposed or self._current not in valid):
            self._current = valid[-1] if valid else None
        return removed

    def dispose_all(self) -> None:
        for marker in self._markers:
            marker.dispose()
        self._markers = []
        self._current = None


class PromptMarkerTracker:
    """Detects prompts as output settles and records them in a session's markers."""

    def __init__(
        self,
        timers: TimerSlots,
        config: CmdgrabConfig | None = None,
        catalogue: PromptCatalogue = DEFAULT_CATALOGUE,
    ) -> None:
        self.config = config or CmdgrabConfig()
        self.catalogue = catalogue
        self._timers = timers

    def schedule_check(self, state: SessionState) -> None:
        """Check for a prompt once output settles; a newer call replaces a pending one."""
        self._timers.schedule(
            state.session_id,
            self.config.settle_delay,
            lambda: self.check_for_prompt(state),
        )

    def check_for_prompt(self, state: SessionState) -> PromptMarker | None:
        """Mark the cursor row if the text before the cursor ends like a prompt."""
        if state.closed:
            return None
        snapshot = state.snapshot
        if snapshot.full_screen:
            return None

        cursor = cursor_position(snapshot)
        if cursor.column > self.config.max_prompt_column:
            log.debug("cursor column %d too far right for a prompt", cursor.column)
            return None

        row = snapshot.row(cursor.row)
        if row is None or not looks_like_prompt(row.text, cursor.column):
            return None
        # A continuation prompt is not where the command starts.
        if self.catalogue.detect_continuation(row.text):
            log.debug("row %d is a continuation prompt; not marking it", cursor.row)
            return None

        marker = self._register(state, cursor.column)
        if marker is not None:
            log.debug(
                "auto-detected prompt in session %s at row %d, column %d",
                state.session_id,
                cursor.row,
                cursor.column,
            )
        return marker

    def mark_prompt_at(
        self, state: SessionState, command_start_column: int, row_offset: int = 0
    ) -> PromptMarker | None:
        """Record a prompt ``row_offset`` rows from the cursor row."""
        marker = self._register(state, command_start_column, row_offset)
        if marker is not None:
            log.debug(
                "marked prompt in session %s at row %d, column %d",
                state.session_id,
                marker.handle.line,
                command_start_column,
            )
        return marker

    def sweep(self, state: SessionState) -> int:
        return state.markers.sweep()

    def current_prompt(self, state: SessionState) -> PromptMarker | None:
        return state.markers.current()

    def _register(
        self, state: SessionState, column: int, row_offset: int = 0
    ) -> PromptMarker | None:
        handle = state.snapshot.register_marker(row_offset)
        if handle is None:
            log.debug("host refused to register a marker in session %s", state.session_id)
            return None
        return state.markers.add(PromptMarker(handle=handle, command_start_column=column))
