"""Stream-relative offset math.

An offset is the time elapsed between a broadcast's start and a captured
moment, net of the delay the submitter asked for. Offsets are rendered as
``MM:SS`` below one hour and ``H:MM:SS`` above it, which is also the format
YouTube accepts in comments as a seek link.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

from cliptime.shared.errors import MalformedTimestamp


def _aware(value: datetime) -> datetime:
    # Naive datetimes are treated as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def elapsed_seconds(broadcast_start: datetime, capture_instant: datetime, delay_seconds: int) -> int:
    """Whole seconds between start and (capture - delay), clamped at zero."""
    adjusted = _aware(capture_instant) - timedelta(seconds=delay_seconds)
    delta = (adjusted - _aware(broadcast_start)).total_seconds()
    return max(0, math.floor(delta))


def format_offset(seconds: int) -> str:
    """Render whole seconds as ``MM:SS`` or ``H:MM:SS``."""
    if seconds < 0:
        raise ValueError("offset cannot be negative")
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def compute_offset(broadcast_start: datetime, capture_instant: datetime, delay_seconds: int) -> str:
    """Stream-relative offset of a clip captured at *capture_instant*.

    A capture that lands before the recorded start (scheduled vs actual start
    drift) is reported as ``00:00``.
    """
    return format_offset(elapsed_seconds(broadcast_start, capture_instant, delay_seconds))


def parse_offset_to_seconds(text: str) -> int:
    """Inverse of :func:`compute_offset`.

    Raises:
        MalformedTimestamp: wrong component count or a non-numeric component.
    """
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise MalformedTimestamp(f"Expected MM:SS or H:MM:SS, got {text!r}")
    if not all(p.isascii() and p.isdigit() for p in parts):
        raise MalformedTimestamp(f"Non-numeric offset component in {text!r}")

    values = [int(p) for p in parts]
    if len(values) == 2:
        minutes, secs = values
        return minutes * 60 + secs
    hours, minutes, secs = values
    return hours * 3600 + minutes * 60 + secs
