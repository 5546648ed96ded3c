"""Shared fixtures: in-memory repositories and a mocked YouTube client."""

from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from cliptime.api.services.youtube_api import YouTubeAPIClient
from cliptime.shared.models import BroadcastState, Clip

CHANNEL_ID = "UC" + "a" * 22
CHAT_ID = "Cg0KC3NvbWVjaGF0aWQxMjM"  # 24 chars
BROADCAST_START = datetime(2026, 3, 1, 18, 0, 0, tzinfo=timezone.utc)


class FakeBroadcastRepository:
    """In-memory stand-in for BroadcastRepository."""

    def __init__(self) -> None:
        self.rows: list[BroadcastState] = []
        self._ids = itertools.count(1)
        self.start_time_writes: list[tuple[int, datetime]] = []

    def add(self, **kwargs) -> BroadcastState:
        state = BroadcastState(id=next(self._ids), **kwargs)
        self.rows.append(state)
        return state

    async def get_latest_live(self, channel_id: str) -> BroadcastState | None:
        live = [r for r in self.rows if r.channel_id == channel_id and r.status == "live"]
        return live[-1] if live else None

    async def chat_id_exists(self, chat_id: str) -> bool:
        return any(r.chat_id == chat_id for r in self.rows)

    async def insert_live(self, channel_id, video_id, title, chat_id) -> BroadcastState:
        return self.add(channel_id=channel_id, video_id=video_id, title=title, chat_id=chat_id)

    async def set_start_time(self, state_id: int, start: datetime) -> None:
        self.start_time_writes.append((state_id, start))
        self.rows = [
            replace(r, stream_start_time=start) if r.id == state_id else r for r in self.rows
        ]


class FakeClipRepository:
    """In-memory stand-in for ClipRepository."""

    def __init__(self) -> None:
        self.clips: list[Clip] = []
        self._ids = itertools.count(1)
        self.list_calls = 0

    async def insert_clip(self, channel_id, chat_id, delay, message, user_name, user_timestamp) -> Clip:
        clip = Clip(
            id=next(self._ids),
            channel_id=channel_id,
            chat_id=chat_id,
            delay=delay,
            message=message,
            user_name=user_name,
            user_timestamp=user_timestamp,
        )
        self.clips.append(clip)
        return clip

    async def list_clips_since(self, channel_id: str, since: datetime) -> list[Clip]:
        self.list_calls += 1
        found = [c for c in self.clips if c.channel_id == channel_id and c.user_timestamp >= since]
        return sorted(found, key=lambda c: c.user_timestamp)


class FakeChannelRepository:
    """In-memory stand-in for ChannelRepository."""

    def __init__(self, blacklist=(), destinations=None) -> None:
        self.blacklist = set(blacklist)
        self.destinations = dict(destinations or {})

    async def is_blacklisted(self, channel_id: str) -> bool:
        return channel_id in self.blacklist

    async def get_discord_destination(self, channel_id: str) -> str | None:
        return self.destinations.get(channel_id)


@pytest.fixture
def broadcast_repo() -> FakeBroadcastRepository:
    return FakeBroadcastRepository()


@pytest.fixture
def clip_repo() -> FakeClipRepository:
    return FakeClipRepository()


@pytest.fixture
def channel_repo() -> FakeChannelRepository:
    return FakeChannelRepository()


@pytest.fixture
def youtube() -> AsyncMock:
    client = AsyncMock(spec=YouTubeAPIClient)
    client.search_videos.return_value = []
    client.get_live_details.return_value = None
    return client
