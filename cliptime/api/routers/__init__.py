"""API Routers package

Routers are organized by feature domain.
"""

from . import clips_router, cron_router, leaderboard_router

__all__ = [
    "clips_router",
    "cron_router",
    "leaderboard_router",
]
