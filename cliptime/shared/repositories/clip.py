"""Repository for the clips table."""

from __future__ import annotations

import logging
from datetime import datetime

import asyncpg

from cliptime.shared.models.clip import Clip

logger = logging.getLogger(__name__)

_CLIP_COLUMNS = "id, channel_id, chat_id, delay, message, user_name, user_timestamp, created_at"


class ClipRepository:
    """Pure SQL operations for clips. Rows are insert-only."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def insert_clip(
        self,
        channel_id: str,
        chat_id: str,
        delay: int,
        message: str,
        user_name: str,
        user_timestamp: datetime,
    ) -> Clip:
        """Persist a clip. Errors propagate: an unrecorded clip is lost for good."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO clips (channel_id, chat_id, delay, message, user_name, user_timestamp)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {_CLIP_COLUMNS}
                """,
                channel_id,
                chat_id,
                delay,
                message,
                user_name,
                user_timestamp,
            )
        if row is None:
            raise RuntimeError("Failed to store clip: no row returned")
        return Clip(**dict(row))

    async def list_clips_since(self, channel_id: str, since: datetime) -> list[Clip]:
        """Clips for a channel captured at or after *since*, oldest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_CLIP_COLUMNS}
                FROM clips
                WHERE channel_id = $1 AND user_timestamp >= $2
                ORDER BY user_timestamp ASC
                """,
                channel_id,
                since,
            )
        return [Clip(**dict(r)) for r in rows]
