"""Cron-triggered routes: keep-alives and highlight compilation"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from cliptime.api.core.dependencies import (
    Services,
    get_discord_api,
    get_services,
    require_cron_secret,
    require_dc_keepalive_secret,
)
from cliptime.api.services.highlights import outcome_to_dict
from cliptime.shared.errors import DiscordAPIError, YouTubeAPIError
from cliptime.shared.validation import is_valid_channel_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["cron"])


@router.api_route(
    "/monitor-streams",
    methods=["GET", "POST"],
    dependencies=[Depends(require_cron_secret)],
)
async def monitor_streams():
    """Keep-alive ping from the scheduler"""
    return {"ok": True}


@router.api_route(
    "/dc-keepalive",
    methods=["GET", "POST"],
    dependencies=[Depends(require_dc_keepalive_secret)],
)
async def discord_keepalive():
    """Touch the Discord API so the bot token stays in use"""
    try:
        bot = await get_discord_api().get_bot_user()
    except DiscordAPIError as e:
        logger.error(f"Discord keep-alive failed ({e.classification}, status={e.status}): {e}")
        raise HTTPException(status_code=502, detail="Discord unreachable") from None
    return {"status": "ok", "bot": bot.get("username")}


@router.post("/cron/highlights", dependencies=[Depends(require_cron_secret)])
async def compile_highlights(
    channel_id: str = Query(..., description="YouTube channel id"),
    services: Services = Depends(get_services),
):
    """Post the highlight comment for the channel's last completed broadcast"""
    if not is_valid_channel_id(channel_id):
        raise HTTPException(status_code=400, detail="Invalid channel id")

    try:
        outcome = await services.highlights.compile_highlights(channel_id)
    except YouTubeAPIError as e:
        logger.error(f"Highlight post failed for {channel_id} ({e.classification}): {e.detail or e}")
        raise HTTPException(status_code=502, detail="Failed to post highlights") from None

    return outcome_to_dict(outcome)
