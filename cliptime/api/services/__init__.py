"""Services layer - clip ingestion, broadcast state, aggregators, API clients.

Services are initialized with their dependencies and accessed through
dependency injection (see ``cliptime.api.core.dependencies``).
"""

from .broadcast_state import BroadcastStateService
from .clip_service import ClipResult, ClipService
from .discord_api import DiscordAPIClient
from .discovery import DiscoveryJob, DiscoveryQueue
from .highlights import (
    HighlightEmpty,
    HighlightOutcome,
    HighlightPosted,
    HighlightService,
    HighlightSkipped,
)
from .leaderboard import ChatterRank, LeaderboardService
from .notifier import ClipNotifier
from .youtube_api import YouTubeAPIClient

__all__ = [
    "BroadcastStateService",
    "ChatterRank",
    "ClipNotifier",
    "ClipResult",
    "ClipService",
    "DiscordAPIClient",
    "DiscoveryJob",
    "DiscoveryQueue",
    "HighlightEmpty",
    "HighlightOutcome",
    "HighlightPosted",
    "HighlightService",
    "HighlightSkipped",
    "LeaderboardService",
    "YouTubeAPIClient",
]
