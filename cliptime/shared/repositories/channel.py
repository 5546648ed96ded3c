"""Repository for the channel_blacklist and discord_channels tables."""

from __future__ import annotations

import logging

import asyncpg

from cliptime.shared.cache import AsyncTTLCache, cached

logger = logging.getLogger(__name__)

# --- In-process caches ---
# Both tables are edited by hand in Supabase, a few minutes of lag is fine.
_blacklist_cache = AsyncTTLCache(maxsize=1, ttl=300)
_discord_channel_cache = AsyncTTLCache(maxsize=128, ttl=300)


class ChannelRepository:
    """Read-only SQL operations for per-channel configuration."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    @cached(cache=_blacklist_cache, key_func=lambda self: "blacklist")
    async def list_blacklisted(self) -> frozenset[str]:
        """All channel ids excluded from broadcast discovery."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch("SELECT channel_id FROM channel_blacklist")
        return frozenset(r["channel_id"] for r in rows)

    async def is_blacklisted(self, channel_id: str) -> bool:
        return channel_id in await self.list_blacklisted()

    @cached(
        cache=_discord_channel_cache,
        key_func=lambda self, channel_id: f"discord_channel:{channel_id}",
    )
    async def get_discord_destination(self, channel_id: str) -> str | None:
        """Discord channel that receives clip notifications for a YouTube channel."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT discord_channel_id FROM discord_channels WHERE channel_id = $1",
                channel_id,
            )
