"""Chat leaderboard routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from cliptime.api.core.dependencies import Services, get_services
from cliptime.shared.validation import is_valid_channel_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


class ChatterEntry(BaseModel):
    user: str
    messages: int


@router.get("/{channel_id}", response_model=list[ChatterEntry])
async def get_top_chatters(
    channel_id: str,
    limit: int = Query(10, ge=1, le=100),
    services: Services = Depends(get_services),
) -> list[ChatterEntry]:
    """
    Top chatters of the channel's most recent completed broadcast

    Args:
        limit: Maximum number of entries to return (default: 10)
    """
    if not is_valid_channel_id(channel_id):
        raise HTTPException(status_code=400, detail="Invalid channel id")

    ranking = await services.leaderboard.top_chatters(channel_id, limit)
    logger.info(f"Leaderboard for {channel_id}: {len(ranking)} entries")
    return [ChatterEntry(user=r.user, messages=r.messages) for r in ranking]
