"""Dependency injection utilities for FastAPI"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import asyncpg
from fastapi import Header, HTTPException, Query

from cliptime.api.core.config import Settings, get_settings
from cliptime.api.services import (
    BroadcastStateService,
    ClipNotifier,
    ClipService,
    DiscordAPIClient,
    DiscoveryQueue,
    HighlightService,
    LeaderboardService,
    YouTubeAPIClient,
)
from cliptime.shared.repositories import BroadcastRepository, ChannelRepository, ClipRepository

logger = logging.getLogger(__name__)


# ============================================
# API clients (shared, connection reuse)
# ============================================

_youtube_api: YouTubeAPIClient | None = None
_discord_api: DiscordAPIClient | None = None


def get_youtube_api() -> YouTubeAPIClient:
    """Get shared YouTubeAPIClient singleton (connection reuse + token cache)."""
    global _youtube_api
    if _youtube_api is None:
        settings = get_settings()
        _youtube_api = YouTubeAPIClient(
            settings.youtube_api_key,
            client_id=settings.youtube_client_id,
            client_secret=settings.youtube_client_secret,
            refresh_token=settings.youtube_refresh_token,
        )
    return _youtube_api


def get_discord_api() -> DiscordAPIClient:
    """Get shared DiscordAPIClient singleton."""
    global _discord_api
    if _discord_api is None:
        settings = get_settings()
        _discord_api = DiscordAPIClient(
            settings.discord_bot_token, timeout=settings.notification_timeout
        )
    return _discord_api


async def close_api_clients() -> None:
    """Close the shared HTTP clients. Call on app shutdown."""
    global _youtube_api, _discord_api
    if _youtube_api is not None:
        await _youtube_api.close()
        _youtube_api = None
    if _discord_api is not None:
        await _discord_api.close()
        _discord_api = None


# ============================================
# Service graph
# ============================================


@dataclass
class Services:
    """Long-lived services bound to one database pool.

    Built once per process: the broadcast state hydration memo and the
    discovery worker only work as singletons.
    """

    broadcasts: BroadcastStateService
    discovery: DiscoveryQueue
    clips: ClipService
    highlights: HighlightService
    leaderboard: LeaderboardService


_services: Services | None = None


def build_services(
    pool: asyncpg.Pool,
    settings: Settings,
    youtube: YouTubeAPIClient,
    discord: DiscordAPIClient,
) -> Services:
    clip_repo = ClipRepository(pool)
    channel_repo = ChannelRepository(pool)
    broadcasts = BroadcastStateService(BroadcastRepository(pool), youtube)
    discovery = DiscoveryQueue(
        broadcasts,
        channel_repo,
        youtube,
        interval=settings.discovery_interval,
        maxsize=settings.discovery_queue_size,
    )
    notifier = ClipNotifier(discord, timeout=settings.notification_timeout)
    return Services(
        broadcasts=broadcasts,
        discovery=discovery,
        clips=ClipService(
            clip_repo,
            channel_repo,
            broadcasts,
            discovery,
            notifier,
            default_discord_channel=settings.discord_channel_id,
        ),
        highlights=HighlightService(broadcasts, clip_repo, youtube),
        leaderboard=LeaderboardService(broadcasts, youtube),
    )


def init_services(pool: asyncpg.Pool) -> Services:
    """Build the service graph and start the discovery worker."""
    global _services
    if _services is not None:
        return _services
    _services = build_services(pool, get_settings(), get_youtube_api(), get_discord_api())
    _services.discovery.start()
    logger.info("Services initialized")
    return _services


async def shutdown_services() -> None:
    global _services
    if _services is not None:
        await _services.discovery.stop()
        _services = None


def get_services() -> Services:
    """FastAPI dependency; 503 until the database is connected."""
    if _services is None:
        raise HTTPException(status_code=503, detail="Database not ready")
    return _services


# ============================================
# Cron authentication
# ============================================


class CronUnauthorized(Exception):
    """Wrong or missing cron secret; rendered as 401 {"error": "Unauthorized"}."""


def _check_secret(expected: str, provided: str | None) -> None:
    # An unset secret locks the endpoint instead of opening it
    if not expected or provided != expected:
        raise CronUnauthorized()


def require_cron_secret(
    secret: str | None = Query(None),
    x_cron_secret: str | None = Header(None),
) -> None:
    _check_secret(get_settings().cron_secret, secret or x_cron_secret)


def require_dc_keepalive_secret(
    secret: str | None = Query(None),
    x_cron_secret: str | None = Header(None),
) -> None:
    _check_secret(get_settings().cron_secret_dc_keep_alive, secret or x_cron_secret)
