"""Data model for the clips table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Clip:
    """A clip flagged from chat. Written once, never updated."""

    id: int
    channel_id: str
    chat_id: str
    delay: int
    message: str
    user_name: str
    user_timestamp: datetime
    created_at: datetime | None = None
