"""Discord notification for new clips. Best effort, never raises."""

from __future__ import annotations

import logging
from typing import Any

from cliptime.api.services.discord_api import DiscordAPIClient
from cliptime.shared.errors import DiscordAPIError
from cliptime.shared.timestamps import parse_offset_to_seconds

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "📎 New Clip"


def watch_url(video_id: str, offset_text: str) -> str:
    return f"https://youtube.com/watch?v={video_id}&t={parse_offset_to_seconds(offset_text)}s"


def thumbnail_url(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def build_clip_embed(
    video_id: str,
    title: str | None,
    message: str | None,
    user: str | None,
    offset_text: str,
) -> dict[str, Any]:
    return {
        "title": message or DEFAULT_TITLE,
        "url": watch_url(video_id, offset_text),
        "image": {"url": thumbnail_url(video_id)},
        "fields": [
            {"name": "🎬 Stream", "value": title or "Unknown"},
            {"name": "👤 By", "value": user or "Unknown", "inline": True},
            {"name": "⏰ Time", "value": offset_text, "inline": True},
        ],
    }


class ClipNotifier:
    """Fire-and-forget delivery of clip events to Discord."""

    def __init__(self, discord: DiscordAPIClient, *, timeout: float = 10.0) -> None:
        self.discord = discord
        self.timeout = timeout

    async def notify(
        self,
        destination_id: str | None,
        video_id: str | None,
        title: str | None,
        message: str | None,
        user: str | None,
        offset_text: str | None,
    ) -> bool:
        """Send one clip embed. Returns True if Discord accepted it."""
        if not destination_id or not video_id or not offset_text:
            logger.warning(
                f"Discord skipped (missing data): destination={destination_id!r} "
                f"video={video_id!r} offset={offset_text!r}"
            )
            return False

        embed = build_clip_embed(video_id, title, message, user, offset_text)
        try:
            await self.discord.send_embed(destination_id, embed, timeout=self.timeout)
        except DiscordAPIError as e:
            logger.error(
                f"Discord send failed ({e.classification}, status={e.status}) "
                f"to {destination_id}: {e.detail or e}"
            )
            return False
        except Exception as e:
            logger.exception(f"Unexpected error sending Discord clip to {destination_id}: {e}")
            return False

        logger.info(f"Discord clip sent to {destination_id} ({video_id} @ {offset_text})")
        return True
