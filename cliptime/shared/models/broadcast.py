"""Data models for broadcast state and YouTube broadcast lookups."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

STATUS_LIVE = "live"
STATUS_COMPLETED = "completed"


@dataclass
class BroadcastState:
    """Cached record of a channel's active or most recent broadcast.

    ``stream_start_time`` stays NULL until the first read that needs it
    hydrates it from YouTube.
    """

    id: int
    channel_id: str
    video_id: str
    title: str | None = None
    status: str = STATUS_LIVE
    stream_start_time: datetime | None = None
    stream_end_time: datetime | None = None
    chat_id: str | None = None
    marked: bool = False
    created_at: datetime | None = None

    @property
    def is_hydrated(self) -> bool:
        return self.stream_start_time is not None

    def with_start_time(self, start: datetime) -> BroadcastState:
        return replace(self, stream_start_time=start)


@dataclass
class CompletedBroadcast:
    """A finished broadcast with confirmed start and end times."""

    video_id: str
    title: str | None
    actual_start: datetime
    actual_end: datetime
    live_chat_id: str | None = None


@dataclass
class VideoSearchResult:
    """One item from a YouTube ``search`` call."""

    video_id: str
    title: str | None = None


@dataclass
class LiveStreamingDetails:
    """``liveStreamingDetails`` part of a YouTube video resource."""

    actual_start: datetime | None = None
    scheduled_start: datetime | None = None
    actual_end: datetime | None = None
    active_live_chat_id: str | None = None

    @property
    def best_start(self) -> datetime | None:
        """Actual start when known, otherwise the scheduled one."""
        return self.actual_start or self.scheduled_start
