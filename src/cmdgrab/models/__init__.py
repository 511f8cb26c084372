"""Data models for cmdgrab."""

from cmdgrab.models.config import CmdgrabConfig
from cmdgrab.models.extraction import Confidence, ExtractionResult

__all__ = ["CmdgrabConfig", "Confidence", "ExtractionResult"]
