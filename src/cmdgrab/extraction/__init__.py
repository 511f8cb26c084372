"""Command extraction strategies."""

from cmdgrab.extraction.expander import expand_boundary
from cmdgrab.extraction.heuristic import HeuristicScanStrategy
from cmdgrab.extraction.probe import (
    END_SEQUENCES,
    HOME_SEQUENCES,
    CursorProbeStrategy,
    ProbeSequence,
)
from cmdgrab.extraction.region import build_result, read_lines

__all__ = [
    "END_SEQUENCES",
    "HOME_SEQUENCES",
    "CursorProbeStrategy",
    "HeuristicScanStrategy",
    "ProbeSequence",
    "build_result",
    "expand_boundary",
    "read_lines",
]
