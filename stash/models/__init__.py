"""Data models for Stash."""

from .content import Block, BlockType, Channel
from .state import ApplicationState, AnalysisResult, default_channels, now_ms

__all__ = [
    "Block",
    "BlockType",
    "Channel",
    "ApplicationState",
    "AnalysisResult",
    "default_channels",
    "now_ms"
]
