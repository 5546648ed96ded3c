"""Broadcast state cache: which broadcast a channel is (or was) streaming."""

from __future__ import annotations

import logging

from cliptime.api.services.youtube_api import YouTubeAPIClient
from cliptime.shared.cache import ReadThrough
from cliptime.shared.errors import YouTubeAPIError
from cliptime.shared.models.broadcast import BroadcastState, CompletedBroadcast
from cliptime.shared.repositories.broadcast import BroadcastRepository

logger = logging.getLogger(__name__)


class BroadcastStateService:
    """Sole writer of broadcast state rows.

    Rows are created by discovery without a start time. The first read that
    needs the start time hydrates it from YouTube and writes it back; later
    reads are served from the row. A row YouTube cannot date yet is retried
    on every read, with no backoff and no terminal marking.
    """

    def __init__(self, repository: BroadcastRepository, youtube: YouTubeAPIClient) -> None:
        self.repository = repository
        self.youtube = youtube
        self._hydrator: ReadThrough[BroadcastState] = ReadThrough(
            is_complete=lambda state: state.is_hydrated,
            fetch=self._fetch_start_time,
            persist=self._persist_start_time,
        )

    async def _fetch_start_time(self, state: BroadcastState) -> BroadcastState | None:
        details = await self.youtube.get_live_details(state.video_id)
        start = details.best_start if details else None
        if start is None:
            logger.warning(f"No start time yet for video {state.video_id} ({state.channel_id})")
            return None
        logger.info(f"Hydrated start time for {state.video_id}: {start.isoformat()}")
        return state.with_start_time(start)

    async def _persist_start_time(self, state: BroadcastState) -> None:
        assert state.stream_start_time is not None
        await self.repository.set_start_time(state.id, state.stream_start_time)

    # ==================== Reads ====================

    async def get_active_broadcast(self, channel_id: str) -> BroadcastState | None:
        """Current live row for a channel, with its start time when resolvable.

        A row whose ``stream_start_time`` is still None means the timestamp
        cannot be computed yet; it is not an error.
        """
        state = await self.repository.get_latest_live(channel_id)
        if state is None:
            return None
        return await self._hydrator.resolve(f"broadcast:{state.id}", state)

    async def get_most_recent_completed_broadcast(self, channel_id: str) -> CompletedBroadcast | None:
        """Latest finished broadcast with both actual start and end confirmed.

        Queried from YouTube directly, not from the cached rows.
        """
        try:
            results = await self.youtube.search_videos(
                channel_id, "completed", order="date", max_results=1
            )
            if not results:
                logger.info(f"No completed broadcast found for {channel_id}")
                return None

            latest = results[0]
            details = await self.youtube.get_live_details(latest.video_id)
        except YouTubeAPIError as e:
            logger.error(
                f"Completed broadcast lookup failed for {channel_id} "
                f"({e.classification}, status={e.status}): {e}"
            )
            return None

        if details is None or details.actual_start is None or details.actual_end is None:
            logger.info(f"Broadcast {latest.video_id} has no confirmed start/end yet")
            return None

        return CompletedBroadcast(
            video_id=latest.video_id,
            title=latest.title,
            actual_start=details.actual_start,
            actual_end=details.actual_end,
            live_chat_id=details.active_live_chat_id,
        )

    async def chat_id_exists(self, chat_id: str) -> bool:
        """Whether discovery already ran for this chat session."""
        return await self.repository.chat_id_exists(chat_id)

    # ==================== Writes ====================

    async def register_live_broadcast(
        self,
        channel_id: str,
        chat_id: str,
        video_id: str,
        title: str | None,
    ) -> BroadcastState:
        """Record a newly discovered live broadcast; supersedes older rows."""
        state = await self.repository.insert_live(channel_id, video_id, title, chat_id)
        logger.info(f"Registered live broadcast {video_id} for {channel_id} (chat {chat_id})")
        return state
