"""Clip webhook parameter validation."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from cliptime.shared.errors import InvalidIdentifier, MissingParameter, UnresolvedPlaceholder

logger = logging.getLogger(__name__)

# Nightbot leaves these verbatim when a variable could not be resolved
PLACEHOLDERS = frozenset({"$(user)", "$(chatid)", "$(channelid)", "$(querystring)"})

CHANNEL_ID_RE = re.compile(r"UC[a-zA-Z0-9_-]{22}")
MIN_CHAT_ID_LENGTH = 22

# clips.delay is a Postgres INTEGER
MAX_DELAY_SECONDS = 2**31 - 1


@dataclass(frozen=True)
class ClipRequest:
    """A validated clip submission."""

    user: str
    channel_id: str
    chat_id: str
    message: str
    delay: int


def is_placeholder(value: object) -> bool:
    return str(value) in PLACEHOLDERS


def is_valid_chat_id(chat_id: object) -> bool:
    return isinstance(chat_id, str) and len(chat_id) >= MIN_CHAT_ID_LENGTH


def is_valid_channel_id(channel_id: object) -> bool:
    return isinstance(channel_id, str) and CHANNEL_ID_RE.fullmatch(channel_id) is not None


def parse_delay(raw: object) -> int | None:
    """Parse a delay in seconds; ``None`` when it is not a usable number."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value) or value < 0 or value > MAX_DELAY_SECONDS:
        return None
    return int(value)


def validate_clip_request(
    user: str | None,
    channel_id: str | None,
    chat_id: str | None,
    message: str | None,
    delay: object,
) -> ClipRequest:
    """Check raw webhook fields and build a :class:`ClipRequest`.

    Checks run in a fixed order (missing, placeholder, shape) so the chat
    bot always gets the most useful reason first.

    Raises:
        MissingParameter: an identifier is empty or the delay is not a
            non-negative number that fits the clips table.
        UnresolvedPlaceholder: an identifier is a raw Nightbot variable.
        InvalidIdentifier: the chat id is too short or the channel id does
            not look like a YouTube channel id.
    """
    parsed_delay = parse_delay(delay)
    if not user or not channel_id or not chat_id or parsed_delay is None:
        raise MissingParameter()

    if is_placeholder(user) or is_placeholder(channel_id) or is_placeholder(chat_id):
        logger.debug(f"Unresolved placeholder: user={user} channel={channel_id} chat={chat_id}")
        raise UnresolvedPlaceholder()

    if not is_valid_chat_id(chat_id) or not is_valid_channel_id(channel_id):
        raise InvalidIdentifier()

    return ClipRequest(
        user=user,
        channel_id=channel_id,
        chat_id=chat_id,
        message=message or "",
        delay=parsed_delay,
    )
