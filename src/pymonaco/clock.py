"""Session countdown extrapolation.

The feed only refreshes ``ExtrapolatedClock`` occasionally; between
refreshes the remaining time is derived from the anchor and the wall clock.
Everything here is a pure function of its arguments.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pymonaco.ingestion.normalize import parse_duration
from pymonaco.models.clock import ClockAnchor

__all__ = ["extrapolate_remaining", "format_duration", "parse_duration", "remaining_now"]


def format_duration(value: timedelta) -> str:
    """Format as ``HH:MM:SS``; negative values format as zero."""
    total = max(0, int(value.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def extrapolate_remaining(anchor: ClockAnchor, delay_ms: int, now: datetime | None = None) -> timedelta:
    """Remaining session time at *now*.

    Not extrapolating: the anchor's own value. Extrapolating:
    ``max(0, remaining - (now - utc) + delay)``. The delay term keeps the
    countdown in step with a delayed snapshot.
    """
    remaining = parse_duration(anchor.remaining)
    if not anchor.extrapolating:
        return remaining
    current = now if now is not None else datetime.now(UTC)
    value = remaining - (current - anchor.utc) + timedelta(milliseconds=delay_ms)
    return max(value, timedelta(0))


def remaining_now(anchor: ClockAnchor | None, delay_ms: int, now: datetime | None = None) -> str | None:
    """Display value of the session countdown.

    A paused clock returns the stored text unmodified; a running one is
    extrapolated and formatted ``HH:MM:SS``.
    """
    if anchor is None:
        return None
    if not anchor.extrapolating:
        return anchor.remaining
    return format_duration(extrapolate_remaining(anchor, delay_ms, now))
