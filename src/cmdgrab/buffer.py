"""Read-only view of a terminal display.

The host terminal supplies an object satisfying ``BufferSnapshot``. Rows are
addressed by absolute index (anchored to the start of history), so an index
stays valid while the display scrolls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

Injector = Callable[[bytes], None]


@dataclass(frozen=True)
class Row:
    """Immutable text of one display row."""

    index: int
    text: str
    wrapped: bool = False

    def slice(self, start: int = 0, end: int | None = None) -> str:
        """Return the right-trimmed text between two columns."""
        return self.text[start:end].rstrip()

    @property
    def blank(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True, order=True)
class CursorPosition:
    """Absolute cursor position, ordered by (row, column)."""

    row: int
    column: int

    def __str__(self) -> str:
        return f"({self.row}, {self.column})"


@dataclass(frozen=True)
class Boundary:
    """Start and end position of a command in the display."""

    start: CursorPosition
    end: CursorPosition

    @property
    def valid(self) -> bool:
        return self.start < self.end

    @property
    def rows(self) -> range:
        return range(self.start.row, self.end.row + 1)


class MarkerHandle(Protocol):
    """Persistent row marker owned by the host display.

    ``line`` follows the marked row through scrolling and reflow.
    ``is_disposed`` turns true when the host drops the row (for example on
    scrollback eviction) or after ``dispose()``.
    """

    @property
    def line(self) -> int: ...

    @property
    def is_disposed(self) -> bool: ...

    def dispose(self) -> None: ...


class BufferSnapshot(Protocol):
    """Live accessor for the display state of one session."""

    @property
    def cursor_column(self) -> int: ...

    @property
    def cursor_row(self) -> int:
        """Cursor row relative to the top of the viewport."""
        ...

    @property
    def scrollback_offset(self) -> int: ...

    @property
    def full_screen(self) -> bool:
        """True while a full-screen program (alternate screen) is active."""
        ...

    @property
    def length(self) -> int:
        """Number of addressable rows, history included."""
        ...

    def row(self, index: int) -> Row | None: ...

    def register_marker(self, offset: int = 0) -> MarkerHandle | None:
        """Create a marker ``offset`` rows from the cursor row."""
        ...


def cursor_position(snapshot: BufferSnapshot) -> CursorPosition:
    """Return the cursor position with its row made absolute."""
    return CursorPosition(
        row=snapshot.scrollback_offset + snapshot.cursor_row,
        column=snapshot.cursor_column,
    )
