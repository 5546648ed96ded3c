"""Clip ingestion: validate, persist, discover, timestamp, notify."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from cliptime.api.services.broadcast_state import BroadcastStateService
from cliptime.api.services.discovery import DiscoveryQueue
from cliptime.api.services.notifier import ClipNotifier
from cliptime.shared.models.clip import Clip
from cliptime.shared.repositories.channel import ChannelRepository
from cliptime.shared.repositories.clip import ClipRepository
from cliptime.shared.timestamps import compute_offset
from cliptime.shared.validation import validate_clip_request

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ClipResult:
    clip: Clip
    offset: str | None = None
    video_id: str | None = None
    notified: bool = False
    discovery_queued: bool = False


class ClipService:
    """Handles one clip submission end to end.

    Only the clip insert is essential; its failure propagates. Discovery,
    hydration and notification degrade to "no timestamp yet" instead.
    """

    def __init__(
        self,
        clips: ClipRepository,
        channels: ChannelRepository,
        broadcasts: BroadcastStateService,
        discovery: DiscoveryQueue,
        notifier: ClipNotifier,
        *,
        default_discord_channel: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.clips = clips
        self.channels = channels
        self.broadcasts = broadcasts
        self.discovery = discovery
        self.notifier = notifier
        self.default_discord_channel = default_discord_channel or None
        self.clock = clock

    async def _resolve_destination(self, channel_id: str) -> str | None:
        try:
            mapped = await self.channels.get_discord_destination(channel_id)
        except Exception as e:
            logger.warning(f"Discord mapping lookup failed for {channel_id}: {type(e).__name__}: {e}")
            mapped = None
        return mapped or self.default_discord_channel

    async def submit(
        self,
        user: str | None,
        channel_id: str | None,
        chat_id: str | None,
        message: str | None,
        delay: object,
    ) -> ClipResult:
        """Record a clip and notify Discord when the broadcast is known.

        Raises:
            ClipRequestError: the request is invalid; nothing was written.
            Exception: the clip could not be stored.
        """
        request = validate_clip_request(user, channel_id, chat_id, message, delay)

        captured_at = self.clock()
        clip = await self.clips.insert_clip(
            channel_id=request.channel_id,
            chat_id=request.chat_id,
            delay=request.delay,
            message=request.message,
            user_name=request.user,
            user_timestamp=captured_at,
        )
        logger.info(f"Clip stored for {request.channel_id} by {request.user} (delay={request.delay}s)")

        result = ClipResult(clip=clip)

        try:
            result.discovery_queued = await self.discovery.submit(request.chat_id, request.channel_id)
        except Exception as e:
            logger.warning(f"Could not queue discovery for {request.channel_id}: {type(e).__name__}: {e}")

        try:
            live = await self.broadcasts.get_active_broadcast(request.channel_id)
        except Exception as e:
            logger.warning(f"Broadcast lookup failed for {request.channel_id}: {type(e).__name__}: {e}")
            live = None

        if live is None or live.stream_start_time is None:
            logger.info(f"No dated live broadcast for {request.channel_id} yet, Discord not sent")
            return result

        result.video_id = live.video_id
        result.offset = compute_offset(live.stream_start_time, captured_at, request.delay)

        destination = await self._resolve_destination(request.channel_id)
        result.notified = await self.notifier.notify(
            destination,
            live.video_id,
            live.title,
            request.message,
            request.user.replace("@", "", 1),
            result.offset,
        )
        return result
