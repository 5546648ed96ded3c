"""Chat leaderboard for a channel's most recent completed broadcast."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass

from cliptime.api.services.broadcast_state import BroadcastStateService
from cliptime.api.services.youtube_api import CHAT_PAGE_SIZE, YouTubeAPIClient
from cliptime.shared.errors import YouTubeAPIError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatterRank:
    user: str
    messages: int


class LeaderboardService:
    """Ranks chat participants of a finished broadcast by message count.

    Either the whole transcript is counted or nothing is returned: a
    leaderboard built from a partial transcript would misrank people.
    """

    def __init__(
        self,
        broadcasts: BroadcastStateService,
        youtube: YouTubeAPIClient,
        *,
        page_size: int = CHAT_PAGE_SIZE,
    ) -> None:
        self.broadcasts = broadcasts
        self.youtube = youtube
        self.page_size = page_size

    async def count_messages(self, live_chat_id: str) -> Counter[str]:
        """Messages per author display name over the whole transcript."""
        counts: Counter[str] = Counter()
        page_token: str | None = None
        pages = 0

        while True:
            items, next_token = await self.youtube.list_chat_messages(
                live_chat_id, page_token, max_results=self.page_size
            )
            pages += 1
            for item in items:
                author = (item.get("authorDetails") or {}).get("displayName")
                if author:
                    counts[author] += 1

            if not items or not next_token or next_token == page_token:
                break
            page_token = next_token

        logger.debug(f"Counted {sum(counts.values())} messages over {pages} page(s)")
        return counts

    async def top_chatters(self, channel_id: str, limit: int = 10) -> list[ChatterRank]:
        """Top *limit* chatters of the channel's last completed broadcast."""
        if limit <= 0:
            return []

        broadcast = await self.broadcasts.get_most_recent_completed_broadcast(channel_id)
        if broadcast is None:
            return []

        try:
            live_chat_id = broadcast.live_chat_id
            if not live_chat_id:
                details = await self.youtube.get_live_details(broadcast.video_id)
                live_chat_id = details.active_live_chat_id if details else None
            if not live_chat_id:
                logger.info(f"No chat transcript available for {broadcast.video_id}")
                return []

            counts = await self.count_messages(live_chat_id)
        except YouTubeAPIError as e:
            logger.error(
                f"Leaderboard for {channel_id} aborted ({e.classification}, status={e.status}): {e}"
            )
            return []

        # sorted() is stable, so ties keep first-seen order
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
        return [ChatterRank(user=user, messages=n) for user, n in ranked[:limit]]
