"""Shared data models for the cliptime service."""

from .broadcast import (
    STATUS_COMPLETED,
    STATUS_LIVE,
    BroadcastState,
    CompletedBroadcast,
    LiveStreamingDetails,
    VideoSearchResult,
)
from .clip import Clip

__all__ = [
    "STATUS_COMPLETED",
    "STATUS_LIVE",
    "BroadcastState",
    "Clip",
    "CompletedBroadcast",
    "LiveStreamingDetails",
    "VideoSearchResult",
]
