"""Active extraction by probing the line editor.

The shell's line editor knows exactly where the typed command begins. Sending
it "beginning of line" and watching where the cursor lands reveals that
position; "end of line" then puts the cursor back. Line editors differ in
which key sequences they bind, so each direction has an ordered list of
candidates, most widely bound first.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cmdgrab.buffer import Boundary, BufferSnapshot, CursorPosition, Injector, cursor_position
from cmdgrab.errors import NoCommand, ProbeTimeout, SessionDetached
from cmdgrab.models.config import CmdgrabConfig

if TYPE_CHECKING:
    from cmdgrab.session import SessionState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeSequence:
    """Bytes a line editor conventionally reads as one cursor movement."""

    name: str
    data: bytes


HOME_SEQUENCES: tuple[ProbeSequence, ...] = (
    ProbeSequence("home", b"\x1b[H"),
    ProbeSequence("ctrl-a", b"\x01"),
    ProbeSequence("home-alt", b"\x1b[1~"),
    ProbeSequence("home-app", b"\x1bOH"),
)

END_SEQUENCES: tuple[ProbeSequence, ...] = (
    ProbeSequence("end", b"\x1b[F"),
    ProbeSequence("ctrl-e", b"\x05"),
    ProbeSequence("end-alt", b"\x1b[4~"),
    ProbeSequence("end-app", b"\x1bOF"),
)


class CursorProbeStrategy:
    """Locate the command by moving the shell's cursor and sampling where it goes."""

    name = "cursor-probe"

    def __init__(
        self,
        config: CmdgrabConfig | None = None,
        home_sequences: tuple[ProbeSequence, ...] = HOME_SEQUENCES,
        end_sequences: tuple[ProbeSequence, ...] = END_SEQUENCES,
    ) -> None:
        self.config = config or CmdgrabConfig()
        self.home_sequences = home_sequences
        self.end_sequences = end_sequences

    async def locate(
        self, state: SessionState, snapshot: BufferSnapshot, inject: Injector
    ) -> Boundary:
        """Probe for the command start, restore the cursor, and return the boundary.

        The end of the boundary is where "end of line" left the cursor when
        that is at or past the original cursor, otherwise the original cursor.

        Raises:
            NoCommand: If the cursor is at column 0.
            ProbeTimeout: If no home sequence moved the cursor.
            SessionDetached: If the session is detached mid-probe.
        """
        origin = cursor_position(snapshot)
        log.debug("starting probe from %s", origin)
        if origin.column == 0:
            raise NoCommand(origin, origin)

        start = await self._first_move(state, snapshot, inject, self.home_sequences, origin)
        if start is None:
            raise ProbeTimeout(tuple(sequence.name for sequence in self.home_sequences))
        log.debug("found command start at %s", start)

        restored = await self._restore(state, snapshot, inject, origin)
        return Boundary(start=start, end=max(restored, origin))

    async def attempt(
        self,
        state: SessionState,
        snapshot: BufferSnapshot,
        inject: Injector,
        sequence: ProbeSequence,
        origin: CursorPosition,
    ) -> CursorPosition | None:
        """Send one sequence and wait for the cursor to settle.

        The cursor has settled once it reads the same position, away from
        ``origin``, for ``stable_readings`` consecutive samples. At the timeout
        the last sample is taken as is. Returns ``None`` when the cursor ends
        where it started.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.probe_timeout
        inject(sequence.data)

        last: CursorPosition | None = None
        stable = 0
        while True:
            await asyncio.sleep(self.config.probe_interval)
            if state.closed:
                raise SessionDetached(state.session_id)
            position = cursor_position(snapshot)
            # An unmoved cursor has not answered yet.
            if position == last and position != origin:
                stable += 1
                if stable >= self.config.stable_readings:
                    break
            else:
                stable = 0
            last = position
            if loop.time() >= deadline:
                log.debug("%s timed out, last sample %s", sequence.name, position)
                break

        return position if position != origin else None

    async def _first_move(
        self,
        state: SessionState,
        snapshot: BufferSnapshot,
        inject: Injector,
        sequences: tuple[ProbeSequence, ...],
        origin: CursorPosition,
    ) -> CursorPosition | None:
        for sequence in sequences:
            log.debug("trying %s", sequence.name)
            position = await self.attempt(state, snapshot, inject, sequence, origin)
            if position is not None:
                log.debug("%s moved the cursor to %s", sequence.name, position)
                return position
        return None

    async def _restore(
        self,
        state: SessionState,
        snapshot: BufferSnapshot,
        inject: Injector,
        target: CursorPosition,
    ) -> CursorPosition:
        position = cursor_position(snapshot)
        for sequence in self.end_sequences:
            if position >= target:
                break
            moved = await self.attempt(state, snapshot, inject, sequence, position)
            position = moved or cursor_position(snapshot)
        if position < target:
            log.warning("could not return the cursor to %s; it is at %s", target, position)
        return position
