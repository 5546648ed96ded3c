"""Background discovery of newly live broadcasts.

A clip from a chat session the service has not seen yet means the channel
may have started a new broadcast. A discovery job asks YouTube for the
channel's live broadcasts and registers them as broadcast state rows.

Jobs run on a single worker task fed by a bounded queue, so two jobs are
never in flight at once and the same channel is never discovered twice
concurrently. Discovery is advisory: a failed or dropped job is not retried,
and pending jobs are lost on restart.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from cliptime.api.services.broadcast_state import BroadcastStateService
from cliptime.api.services.youtube_api import YouTubeAPIClient
from cliptime.shared.errors import YouTubeAPIError
from cliptime.shared.repositories.channel import ChannelRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveryJob:
    chat_id: str
    channel_id: str


class DiscoveryQueue:
    """Deduplicated single-consumer discovery worker."""

    def __init__(
        self,
        broadcasts: BroadcastStateService,
        channels: ChannelRepository,
        youtube: YouTubeAPIClient,
        *,
        interval: float = 1.0,
        maxsize: int = 100,
        max_results: int = 5,
    ) -> None:
        self.broadcasts = broadcasts
        self.channels = channels
        self.youtube = youtube
        self.interval = interval
        self.max_results = max_results
        self._queue: asyncio.Queue[DiscoveryJob] = asyncio.Queue(maxsize=maxsize)
        self._pending: set[str] = set()
        self._worker: asyncio.Task | None = None
        self._busy = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        self._worker = asyncio.create_task(self._run(), name="discovery-worker")
        logger.info(f"Discovery worker started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        dropped = self._queue.qsize()
        if dropped:
            logger.info(f"Discovery worker stopped, {dropped} pending job(s) dropped")

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def busy(self) -> bool:
        """True while a job is being processed."""
        return self._busy

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def submit(self, chat_id: str, channel_id: str) -> bool:
        """Enqueue discovery for a chat session unless it is known or pending.

        Returns True when a job was enqueued.
        """
        if chat_id in self._pending:
            return False
        if await self.broadcasts.chat_id_exists(chat_id):
            return False
        # Re-check: another submit for the same chat may have run during the await
        if chat_id in self._pending:
            return False

        try:
            self._queue.put_nowait(DiscoveryJob(chat_id=chat_id, channel_id=channel_id))
        except asyncio.QueueFull:
            logger.warning(f"Discovery queue full, dropping job for {channel_id} (chat {chat_id})")
            return False

        self._pending.add(chat_id)
        logger.debug(f"Discovery job queued for {channel_id} (chat {chat_id})")
        return True

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            self._busy = True
            try:
                await self.process(job)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Discovery job for {job.channel_id} failed: {e}")
            finally:
                self._busy = False
                self._pending.discard(job.chat_id)
                self._queue.task_done()
            if self.interval > 0:
                await asyncio.sleep(self.interval)

    async def process(self, job: DiscoveryJob) -> int:
        """Run one discovery job. Returns the number of broadcasts registered."""
        if await self.channels.is_blacklisted(job.channel_id):
            logger.info(f"Skipping discovery for blacklisted channel {job.channel_id}")
            return 0

        try:
            results = await self.youtube.search_videos(
                job.channel_id, "live", order="date", max_results=self.max_results
            )
        except YouTubeAPIError as e:
            logger.error(
                f"Live search failed for {job.channel_id} ({e.classification}, status={e.status}): {e}"
            )
            return 0

        if not results:
            logger.info(f"No live broadcast found for {job.channel_id}")
            return 0

        for result in results:
            await self.broadcasts.register_live_broadcast(
                job.channel_id, job.chat_id, result.video_id, result.title
            )
        return len(results)
