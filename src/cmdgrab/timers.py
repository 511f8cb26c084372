"""Single-slot cancellable timers keyed by session id."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Hashable

log = logging.getLogger(__name__)


class TimerSlots:
    """At most one pending callback per key; scheduling again replaces it.

    Timers run on the asyncio event loop that is current when ``schedule`` is
    called.
    """

    def __init__(self) -> None:
        self._handles: dict[Hashable, asyncio.TimerHandle] = {}

    def schedule(self, key: Hashable, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` after ``delay`` seconds, cancelling any earlier one for ``key``."""
        self.cancel(key)
        loop = asyncio.get_running_loop()

        def _fire() -> None:
            self._handles.pop(key, None)
            callback()

        self._handles[key] = loop.call_later(delay, _fire)

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending callback for ``key``; return whether one existed."""
        handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        log.debug("cancelled pending timer for %r", key)
        return True

    def pending(self, key: Hashable) -> bool:
        return key in self._handles
