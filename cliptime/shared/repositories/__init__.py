"""Repository layer for the cliptime record store."""

from .broadcast import BroadcastRepository
from .channel import ChannelRepository
from .clip import ClipRepository

__all__ = [
    "BroadcastRepository",
    "ChannelRepository",
    "ClipRepository",
]
