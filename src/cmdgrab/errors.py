"""Exception types for cmdgrab.

The extraction errors are raised between the strategies and the extractor
and are always resolved there by falling back to a weaker strategy or to
"nothing found". Callers of ``CommandExtractor.extract`` never see them.
"""

from __future__ import annotations


class CmdgrabError(Exception):
    """Base exception for cmdgrab."""


class ConfigError(CmdgrabError):
    """Raised when a configuration value cannot be used."""


class ExtractionError(CmdgrabError):
    """Base exception for recoverable extraction outcomes."""


class NoCommand(ExtractionError):
    """Raised when a boundary is empty or inverted."""

    def __init__(self, start: object, end: object):
        super().__init__(f"no command between {start} and {end}")
        self.start = start
        self.end = end


class ProbeTimeout(ExtractionError):
    """Raised when no probe sequence moved the cursor before its deadline."""

    def __init__(self, tried: tuple[str, ...]):
        super().__init__(f"cursor did not move for: {', '.join(tried)}")
        self.tried = tried


class FullScreenActive(ExtractionError):
    """Raised when a full-screen program owns the display."""


class InvalidMarker(ExtractionError):
    """Raised when a disposed prompt marker is read."""


class SessionDetached(ExtractionError):
    """Raised when a session is detached while an extraction is running."""

    def __init__(self, session_id: str):
        super().__init__(f"session {session_id!r} was detached")
        self.session_id = session_id


class EditorError(CmdgrabError):
    """Raised when the editor cannot be started."""
