"""Repository for the live_status (broadcast state) table."""

from __future__ import annotations

import logging
from datetime import datetime

import asyncpg

from cliptime.shared.models.broadcast import STATUS_LIVE, BroadcastState

logger = logging.getLogger(__name__)

_STATE_COLUMNS = (
    "id, channel_id, video_id, title, status, stream_start_time, "
    "stream_end_time, chat_id, marked, created_at"
)


class BroadcastRepository:
    """Pure SQL operations for broadcast state rows.

    A newer row for the same channel supersedes older ones; nothing is
    deleted here.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def get_latest_live(self, channel_id: str) -> BroadcastState | None:
        """Newest row with status 'live' for a channel."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_STATE_COLUMNS}
                FROM live_status
                WHERE channel_id = $1 AND status = $2
                ORDER BY created_at DESC, id DESC
                LIMIT 1
                """,
                channel_id,
                STATUS_LIVE,
            )
        return BroadcastState(**dict(row)) if row else None

    async def chat_id_exists(self, chat_id: str) -> bool:
        """Whether any row was created from this chat session."""
        async with self.pool.acquire() as conn:
            found = await conn.fetchval(
                "SELECT EXISTS(SELECT 1 FROM live_status WHERE chat_id = $1)",
                chat_id,
            )
        return bool(found)

    async def insert_live(
        self,
        channel_id: str,
        video_id: str,
        title: str | None,
        chat_id: str | None,
    ) -> BroadcastState:
        """Register a newly discovered live broadcast (start time not yet known)."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO live_status (channel_id, video_id, title, status, chat_id, marked)
                VALUES ($1, $2, $3, $4, $5, FALSE)
                RETURNING {_STATE_COLUMNS}
                """,
                channel_id,
                video_id,
                title,
                STATUS_LIVE,
                chat_id,
            )
        if row is None:
            raise RuntimeError("Failed to register broadcast: no row returned")
        return BroadcastState(**dict(row))

    async def set_start_time(self, state_id: int, start: datetime) -> None:
        """Write a hydrated start time back to its row."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                "UPDATE live_status SET stream_start_time = $1 WHERE id = $2",
                start,
                state_id,
            )
