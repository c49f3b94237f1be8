"""Race-control timeline.

Merges race-control messages and session-status entries into one
most-recent-first sequence. The result is rebuilt on every call; both
sources keep growing during a session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pymonaco.ingestion.normalize import collection_values
from pymonaco.models.race_control import TimedEvent

_logger = logging.getLogger(__name__)

EventPredicate = Callable[[TimedEvent], bool]

#: Shown instead of an age once an event is older than the elapsed limit.
ELAPSED_UNKNOWN = "--:--"

DEFAULT_ELAPSED_LIMIT = 3600.0


def exclude_blue_flags(event: TimedEvent) -> bool:
    """Predicate dropping blue-flag events."""
    return event.flag_lower != "blue"


def merge_events(
    events_a: Iterable[TimedEvent],
    events_b: Iterable[TimedEvent],
    predicate: EventPredicate | None = None,
) -> list[TimedEvent]:
    """Concatenate, filter and sort by timestamp, most recent first.

    Events with equal timestamps keep their concatenated input order.
    """
    combined = [*events_a, *events_b]
    if predicate is not None:
        combined = [event for event in combined if predicate(event)]
    # sorted() stays stable with reverse=True.
    return sorted(combined, key=lambda event: event.utc, reverse=True)


def events_from_feed(value: Any) -> list[TimedEvent]:
    """Parse a feed collection (list or index-keyed dict) into events.

    Entries without a usable ``Utc`` are skipped.
    """
    events: list[TimedEvent] = []
    for entry in collection_values(value):
        if not isinstance(entry, dict):
            continue
        try:
            events.append(TimedEvent.model_validate(entry))
        except ValidationError:
            _logger.debug("Skipping timeline entry without a valid timestamp: %s", entry)
    return events


def race_control_timeline(snapshot: Mapping[str, Any], predicate: EventPredicate | None = None) -> list[TimedEvent]:
    """Merged timeline of ``RaceControlMessages.Messages`` and ``SessionData.StatusSeries``."""
    race_control = snapshot.get("RaceControlMessages")
    session_data = snapshot.get("SessionData")
    messages = race_control.get("Messages") if isinstance(race_control, Mapping) else None
    statuses = session_data.get("StatusSeries") if isinstance(session_data, Mapping) else None
    return merge_events(events_from_feed(messages), events_from_feed(statuses), predicate)


def elapsed_since(utc: datetime, now: datetime | None = None, *, limit: float = DEFAULT_ELAPSED_LIMIT) -> str:
    """Age of an event as ``mm:ss``.

    Future timestamps clamp to ``00:00``; ages above *limit* seconds return
    :data:`ELAPSED_UNKNOWN`.
    """
    current = now if now is not None else datetime.now(UTC)
    if utc.tzinfo is None:
        utc = utc.replace(tzinfo=UTC)
    elapsed = int((current - utc).total_seconds())
    if elapsed > limit:
        return ELAPSED_UNKNOWN
    elapsed = max(0, elapsed)
    minutes, seconds = divmod(elapsed, 60)
    return f"{minutes:02d}:{seconds:02d}"
