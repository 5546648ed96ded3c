"""Clip webhook route (called by the chat bot's urlfetch command)"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from cliptime.api.core.config import get_settings
from cliptime.api.core.dependencies import Services, get_services
from cliptime.shared.errors import ClipRequestError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["clips"])


async def _read_body(request: Request) -> dict[str, Any]:
    """JSON or form body as a dict; empty for GET or unparseable bodies."""
    content_type = request.headers.get("content-type", "")
    try:
        if "application/json" in content_type:
            data = await request.json()
            return data if isinstance(data, dict) else {}
        if "form" in content_type:
            return dict(await request.form())
    except ValueError as e:
        logger.warning(f"Ignoring unparseable clip body: {e}")
    return {}


def _pick(body: dict[str, Any], query: Any, *names: str) -> Any:
    """First non-empty value among *names*, body before query string."""
    for source in (body, query):
        for name in names:
            value = source.get(name)
            if value not in (None, ""):
                return value
    return None


@router.api_route("/clip", methods=["GET", "POST"], response_class=PlainTextResponse)
async def submit_clip(request: Request, services: Services = Depends(get_services)):
    """Record a clip for the channel's current broadcast."""
    body = await _read_body(request)
    query = request.query_params

    user = _pick(body, query, "user")
    channel_id = _pick(body, query, "channelid", "channelId")
    chat_id = _pick(body, query, "chatId", "chatid")
    message = _pick(body, query, "msg") or ""
    delay = _pick(body, query, "delay")

    try:
        result = await services.clips.submit(user, channel_id, chat_id, message, delay)
    except ClipRequestError as e:
        logger.info(f"Clip rejected: {e.public_message} (user={user!r}, channel={channel_id!r})")
        return PlainTextResponse(e.public_message, status_code=400)
    except Exception as e:
        logger.exception(f"Failed to store clip for {channel_id}: {e}")
        return PlainTextResponse("Failed to store clip", status_code=500)

    tool = get_settings().tool_used
    return f"Timestamped (with -{result.clip.delay}s delay) by {user}. Tool used: {tool}"
