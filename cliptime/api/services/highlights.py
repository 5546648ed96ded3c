"""Highlight reel: one YouTube comment listing every clip of a broadcast."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Literal

from cliptime.api.services.broadcast_state import BroadcastStateService
from cliptime.api.services.youtube_api import YouTubeAPIClient
from cliptime.shared.models.clip import Clip
from cliptime.shared.repositories.clip import ClipRepository
from cliptime.shared.timestamps import compute_offset

logger = logging.getLogger(__name__)

HEADER = "🎬 Stream highlights"
MAX_MESSAGE_LENGTH = 80


@dataclass(frozen=True)
class HighlightSkipped:
    reason: str
    outcome: Literal["skipped"] = "skipped"


@dataclass(frozen=True)
class HighlightEmpty:
    video_id: str
    outcome: Literal["empty"] = "empty"


@dataclass(frozen=True)
class HighlightPosted:
    video_id: str
    clip_count: int
    comment_id: str | None = None
    outcome: Literal["posted"] = "posted"


HighlightOutcome = HighlightSkipped | HighlightEmpty | HighlightPosted


def outcome_to_dict(outcome: HighlightOutcome) -> dict:
    return asdict(outcome)


def clean_message(clip: Clip, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Single-line, length-bounded label for a clip."""
    text = clip.message or f"clipped by {clip.user_name}"
    text = " ".join(text.splitlines()).strip()
    return text[:max_length]


def render_report(lines: list[tuple[str, str]]) -> str:
    """Header followed by one ``<offset> – <message>`` line per clip."""
    body = "\n".join(f"{offset} – {message}" for offset, message in lines)
    return f"{HEADER}\n{body}"


class HighlightService:
    """Compiles the clips of a channel's last finished broadcast."""

    def __init__(
        self,
        broadcasts: BroadcastStateService,
        clips: ClipRepository,
        youtube: YouTubeAPIClient,
    ) -> None:
        self.broadcasts = broadcasts
        self.clips = clips
        self.youtube = youtube

    async def compile_highlights(self, channel_id: str) -> HighlightOutcome:
        """Post the highlight comment for the last completed broadcast.

        Not deduplicated: running it twice posts two comments. A failed
        comment post raises YouTubeAPIError to the caller.
        """
        broadcast = await self.broadcasts.get_most_recent_completed_broadcast(channel_id)
        if broadcast is None:
            logger.info(f"Highlights skipped for {channel_id}: no confirmed completed broadcast")
            return HighlightSkipped(reason="no completed broadcast with confirmed start and end")

        clips = await self.clips.list_clips_since(channel_id, broadcast.actual_start)
        if not clips:
            logger.info(f"Highlights for {broadcast.video_id}: no clips")
            return HighlightEmpty(video_id=broadcast.video_id)

        lines = [
            (compute_offset(broadcast.actual_start, clip.user_timestamp, clip.delay), clean_message(clip))
            for clip in clips
        ]
        report = render_report(lines)

        comment_id = await self.youtube.post_comment(broadcast.video_id, report)
        logger.info(f"Highlights posted on {broadcast.video_id} ({len(clips)} clips)")
        return HighlightPosted(video_id=broadcast.video_id, clip_count=len(clips), comment_id=comment_id)
