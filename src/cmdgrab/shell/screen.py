"""pyte-backed display for the shell wrapper.

``TrackingScreen`` extends pyte's ``HistoryScreen`` with what extraction
needs and pyte does not keep: a count of rows scrolled into history (so rows
can be addressed absolutely), which rows were started by auto-wrap rather
than a line feed, and the private modes for the alternate screen and
bracketed paste.
"""

from __future__ import annotations

import logging

import pyte
from pyte import modes as mo
from pyte.screens import Margins

from cmdgrab.buffer import Row

log = logging.getLogger(__name__)

# Private modes are stored shifted by pyte.
ALTERNATE_SCREEN_MODES = frozenset(mode << 5 for mode in (47, 1047, 1049))
BRACKETED_PASTE_MODE = 2004 << 5

DEFAULT_HISTORY = 1000


class TrackingScreen(pyte.HistoryScreen):
    """A ``HistoryScreen`` that keeps absolute row numbers and wrap flags."""

    def __init__(self, columns: int, lines: int, history: int = DEFAULT_HISTORY) -> None:
        self.scrolled = 0
        self.wrapped_rows: set[int] = set()
        super().__init__(columns, lines, history=history)
        self.scrolled = 0

    @property
    def dropped(self) -> int:
        """Rows that scrolled out of the retained history."""
        return self.scrolled - len(self.history.top)

    @property
    def full_screen(self) -> bool:
        return bool(ALTERNATE_SCREEN_MODES & self.mode)

    @property
    def bracketed_paste(self) -> bool:
        return BRACKETED_PASTE_MODE in self.mode

    def draw(self, data: str) -> None:
        for char in data:
            wraps = self.cursor.x == self.columns and mo.DECAWM in self.mode
            super().draw(char)
            if wraps:
                self.wrapped_rows.add(self.scrolled + self.cursor.y)

    def index(self) -> None:
        _, bottom = self.margins or Margins(0, self.lines - 1)
        if self.cursor.y == bottom:
            # HistoryScreen moves the top row into history here.
            self.scrolled += 1
        super().index()
        self.wrapped_rows.discard(self.dropped - 1)

    def linefeed(self) -> None:
        super().linefeed()
        self.wrapped_rows.discard(self.scrolled + self.cursor.y)

    def erase_in_display(self, how: int = 0, *args, **kwargs) -> None:
        super().erase_in_display(how, *args, **kwargs)
        if how == 0:
            cleared = range(self.cursor.y + 1, self.lines)
        elif how == 1:
            cleared = range(0, self.cursor.y)
        else:
            cleared = range(0, self.lines)
        for y in cleared:
            self.wrapped_rows.discard(self.scrolled + y)

    def reset(self) -> None:
        super().reset()
        # Rows from before the reset are gone; keep numbering monotonic.
        self.scrolled += self.lines
        self.wrapped_rows.clear()
        log.debug("screen reset; rows before %d are gone", self.scrolled)

    def row_text(self, index: int) -> str | None:
        """Return the text of absolute row ``index``, or ``None`` if it is gone."""
        if index < self.dropped or index >= self.scrolled + self.lines:
            return None
        if index < self.scrolled:
            line = self.history.top[index - self.dropped]
        else:
            line = self.buffer[index - self.scrolled]
        return "".join(line[x].data for x in range(self.columns))


class ScreenMarker:
    """Marker on an absolute row of a ``TrackingScreen``."""

    def __init__(self, screen: TrackingScreen, line: int) -> None:
        self._screen = screen
        self._line = line
        self._disposed = False

    @property
    def line(self) -> int:
        return self._line

    @property
    def is_disposed(self) -> bool:
        return self._disposed or self._line < self._screen.dropped

    def dispose(self) -> None:
        self._disposed = True


class ScreenSnapshot:
    """Read the state of a ``TrackingScreen`` the way extraction expects."""

    def __init__(self, screen: TrackingScreen) -> None:
        self.screen = screen

    @property
    def cursor_column(self) -> int:
        return min(self.screen.cursor.x, self.screen.columns)

    @property
    def cursor_row(self) -> int:
        return self.screen.cursor.y

    @property
    def scrollback_offset(self) -> int:
        return self.screen.scrolled

    @property
    def full_screen(self) -> bool:
        return self.screen.full_screen

    @property
    def bracketed_paste(self) -> bool:
        return self.screen.bracketed_paste

    @property
    def length(self) -> int:
        return self.screen.scrolled + self.screen.lines

    def row(self, index: int) -> Row | None:
        text = self.screen.row_text(index)
        if text is None:
            return None
        return Row(index=index, text=text, wrapped=index in self.screen.wrapped_rows)

    def register_marker(self, offset: int = 0) -> ScreenMarker | None:
        line = self.screen.scrolled + self.screen.cursor.y + offset
        if line < self.screen.dropped or line >= self.length:
            return None
        return ScreenMarker(self.screen, line)
