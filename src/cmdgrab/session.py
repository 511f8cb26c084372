"""Per-session state and the registry that owns it."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from cmdgrab.buffer import BufferSnapshot
from cmdgrab.timers import TimerSlots
from cmdgrab.tracker import MarkerSet

log = logging.getLogger(__name__)


@dataclass(eq=False)
class SessionState:
    """Everything cmdgrab keeps for one terminal session."""

    session_id: str
    snapshot: BufferSnapshot
    markers: MarkerSet
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    closed: bool = False


class AttachHandle:
    """Returned by attach; ``dispose()`` detaches the session it was issued for."""

    def __init__(self, registry: SessionRegistry, state: SessionState) -> None:
        self._registry = registry
        self._state = state

    @property
    def session_id(self) -> str:
        return self._state.session_id

    def dispose(self) -> None:
        # A later attach for the same id replaced this state; leave it alone.
        if self._registry.get(self._state.session_id) is self._state:
            self._registry.detach(self._state.session_id)


class SessionRegistry:
    """Owns all session state; attach and detach bound its lifetime."""

    def __init__(self, marker_capacity: int = 100) -> None:
        self.marker_capacity = marker_capacity
        self.timers = TimerSlots()
        self._sessions: dict[str, SessionState] = {}
        # Unattached ids share one lock per id while any extraction uses it.
        self._transient_locks: dict[str, asyncio.Lock] = {}
        self._transient_users: dict[str, int] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def attach(self, session_id: str, snapshot: BufferSnapshot) -> SessionState:
        """Create fresh state for ``session_id``, replacing any existing state."""
        self.detach(session_id)
        state = SessionState(
            session_id=session_id,
            snapshot=snapshot,
            markers=MarkerSet(self.marker_capacity),
        )
        self._sessions[session_id] = state
        log.debug("attached session %s", session_id)
        return state

    def get(self, session_id: str) -> SessionState | None:
        return self._sessions.get(session_id)

    def transient(self, session_id: str, snapshot: BufferSnapshot) -> SessionState:
        """State for a session that was never attached; it keeps no markers.

        Transient states for the same id share a lock, so extractions on an
        unattached session still run one at a time. Pair every call with
        ``release``.
        """
        lock = self._transient_locks.get(session_id)
        if lock is None:
            lock = self._transient_locks[session_id] = asyncio.Lock()
        self._transient_users[session_id] = self._transient_users.get(session_id, 0) + 1
        return SessionState(
            session_id=session_id, snapshot=snapshot, markers=MarkerSet(1), lock=lock
        )

    def release(self, state: SessionState) -> None:
        """Forget the shared lock of a transient state once nothing uses it."""
        users = self._transient_users.get(state.session_id, 0) - 1
        if users > 0:
            self._transient_users[state.session_id] = users
            return
        self._transient_users.pop(state.session_id, None)
        self._transient_locks.pop(state.session_id, None)

    def detach(self, session_id: str) -> bool:
        """Cancel timers, dispose markers and drop the state; return whether it existed."""
        state = self._sessions.pop(session_id, None)
        if state is None:
            return False
        state.closed = True
        self.timers.cancel(session_id)
        state.markers.dispose_all()
        log.debug("detached session %s", session_id)
        return True
