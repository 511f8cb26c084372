"""Extraction orchestrator.

``CommandExtractor`` is the entry point hosts use. It owns the per-session
registry, feeds the prompt tracker from display events and resolves an
extraction request by trying the strategies in a fixed order:

1. a full-screen program owns the display: nothing to extract;
2. probe the line editor, when the host can inject input;
3. scan the display, seeded by the most recent live prompt marker.

Every extraction error is resolved here; ``extract`` returns ``None`` rather
than raising.
"""

from __future__ import annotations

import logging

from cmdgrab.buffer import BufferSnapshot, CursorPosition, Injector, cursor_position
from cmdgrab.errors import ExtractionError, FullScreenActive, InvalidMarker, SessionDetached
from cmdgrab.extraction import (
    CursorProbeStrategy,
    HeuristicScanStrategy,
    build_result,
    expand_boundary,
)
from cmdgrab.models import CmdgrabConfig, ExtractionResult
from cmdgrab.patterns import DEFAULT_CATALOGUE, PromptCatalogue
from cmdgrab.session import AttachHandle, SessionRegistry, SessionState
from cmdgrab.tracker import PromptMarker, PromptMarkerTracker

log = logging.getLogger(__name__)


class CommandExtractor:
    """Find the command being typed in a terminal session."""

    def __init__(
        self, config: CmdgrabConfig | None = None, catalogue: PromptCatalogue | None = None
    ) -> None:
        self.config = config or CmdgrabConfig()
        self.catalogue = catalogue or DEFAULT_CATALOGUE.with_custom(self.config.prompt_pattern)
        self.registry = SessionRegistry(self.config.max_markers)
        self.tracker = PromptMarkerTracker(self.registry.timers, self.config, self.catalogue)
        self.probe = CursorProbeStrategy(self.config)
        self.heuristic = HeuristicScanStrategy(self.catalogue, self.config.max_scan_rows)

    def attach(self, session_id: str, snapshot: BufferSnapshot) -> AttachHandle:
        """Start tracking ``session_id``; dispose the handle to stop."""
        state = self.registry.attach(session_id, snapshot)
        return AttachHandle(self.registry, state)

    def detach(self, session_id: str) -> bool:
        return self.registry.detach(session_id)

    def on_line_feed(self, session_id: str) -> None:
        """Host hook: the cursor moved to a new row."""
        state = self.registry.get(session_id)
        if state is not None:
            self.tracker.schedule_check(state)

    def on_write_parsed(self, session_id: str) -> None:
        """Host hook: a chunk of output was applied to the display."""
        state = self.registry.get(session_id)
        if state is not None:
            self.tracker.sweep(state)

    def mark_current_prompt(self, session_id: str) -> PromptMarker | None:
        """Record the cursor position as the start of a command."""
        state = self.registry.get(session_id)
        if state is None:
            log.debug("cannot mark prompt in unattached session %s", session_id)
            return None
        return self.tracker.mark_prompt_at(state, state.snapshot.cursor_column)

    def current_prompt(self, session_id: str) -> PromptMarker | None:
        state = self.registry.get(session_id)
        if state is None:
            return None
        return self.tracker.current_prompt(state)

    def prompt_history(self, session_id: str) -> list[CursorPosition]:
        """Positions of the live prompt markers, oldest first."""
        state = self.registry.get(session_id)
        if state is None:
            return []
        return [marker.position for marker in state.markers.live()]

    async def extract(
        self,
        session_id: str,
        snapshot: BufferSnapshot,
        injector: Injector | None = None,
    ) -> ExtractionResult | None:
        """Return the command at the cursor of ``snapshot``, or ``None``.

        ``injector`` writes bytes to the session's input and enables the
        cursor probe. Extractions for one session run one at a time.
        """
        state = self.registry.get(session_id)
        attached = state is not None
        if state is None:
            state = self.registry.transient(session_id, snapshot)

        try:
            async with state.lock:
                if state.closed:
                    return None
                try:
                    return await self._resolve(state, snapshot, injector, attached)
                except SessionDetached:
                    log.debug("session %s detached during extraction", session_id)
                    return None
                except ExtractionError as exc:
                    log.debug("nothing to extract in session %s: %s", session_id, exc)
                    return None
        finally:
            if not attached:
                self.registry.release(state)

    async def _resolve(
        self,
        state: SessionState,
        snapshot: BufferSnapshot,
        injector: Injector | None,
        attached: bool,
    ) -> ExtractionResult:
        if snapshot.full_screen:
            raise FullScreenActive("a full-screen program is active")

        if injector is not None:
            try:
                return await self._extract_by_probe(state, snapshot, injector, attached)
            except SessionDetached:
                raise
            except ExtractionError as exc:
                log.debug("probe failed (%s); falling back to heuristic scan", exc)

        return self._extract_by_scan(state, snapshot)

    async def _extract_by_probe(
        self,
        state: SessionState,
        snapshot: BufferSnapshot,
        injector: Injector,
        attached: bool,
    ) -> ExtractionResult:
        boundary = await self.probe.locate(state, snapshot, injector)
        boundary = expand_boundary(snapshot, boundary, self.catalogue, self.config.max_scan_rows)
        result = build_result(snapshot, boundary, self.catalogue, "high")
        if attached:
            offset = boundary.start.row - cursor_position(snapshot).row
            self.tracker.mark_prompt_at(state, boundary.start.column, offset)
        return result

    def _extract_by_scan(self, state: SessionState, snapshot: BufferSnapshot) -> ExtractionResult:
        cursor = cursor_position(snapshot)
        seed = self.tracker.current_prompt(state)
        try:
            boundary, confidence = self.heuristic.locate(snapshot, cursor, seed)
        except InvalidMarker:
            self.tracker.sweep(state)
            boundary, confidence = self.heuristic.locate(snapshot, cursor)
        boundary = expand_boundary(snapshot, boundary, self.catalogue, self.config.max_scan_rows)
        return build_result(snapshot, boundary, self.catalogue, confidence)
