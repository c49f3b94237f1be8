"""Read-only projections of the live snapshot.

Helpers here take a snapshot mapping (as returned by
``LiveStateStore.snapshot()`` or carried by ``SnapshotUpdate.feeds``) and
return typed models. They never modify the snapshot.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from pymonaco.ingestion.normalize import collection_values
from pymonaco.models.car import CarTelemetry
from pymonaco.models.timing import Stint, TimingLine
from pymonaco.timeline import EventPredicate, events_from_feed

_logger = logging.getLogger(__name__)


class SessionPhase(enum.StrEnum):
    NO_CONNECTION = "no_connection"
    SYNCING = "syncing"
    NO_SESSION = "no_session"
    LIVE = "live"


def _section(feeds: Mapping[str, Any], *path: str) -> Any:
    value: Any = feeds
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def session_phase(*, connected: bool, syncing: bool, feeds: Mapping[str, Any]) -> SessionPhase:
    """What a consumer should display, in precedence order."""
    if not connected:
        return SessionPhase.NO_CONNECTION
    if syncing:
        return SessionPhase.SYNCING
    if not feeds.get("Heartbeat"):
        return SessionPhase.NO_SESSION
    return SessionPhase.LIVE


def timing_lines(feeds: Mapping[str, Any]) -> dict[str, TimingLine]:
    """All ``TimingData`` lines keyed by racing number.

    Lines that fail validation are skipped.
    """
    lines = _section(feeds, "TimingData", "Lines")
    if not isinstance(lines, Mapping):
        return {}
    result: dict[str, TimingLine] = {}
    for racing_number, value in lines.items():
        if not isinstance(value, Mapping):
            continue
        try:
            result[str(racing_number)] = TimingLine.from_feed(str(racing_number), dict(value))
        except ValidationError:
            _logger.debug("Skipping timing line %s: %s", racing_number, value)
    return result


def standings(feeds: Mapping[str, Any]) -> list[TimingLine]:
    """Timing lines ordered by position; lines without a position go last."""
    lines = list(timing_lines(feeds).values())
    return sorted(lines, key=lambda line: (line.position is None, line.position or 0))


def current_stint(feeds: Mapping[str, Any], racing_number: str) -> Stint | None:
    """The last (current) stint of a driver from ``TimingAppData``."""
    stints = collection_values(_section(feeds, "TimingAppData", "Lines", racing_number, "Stints"))
    if not stints or not isinstance(stints[-1], Mapping):
        return None
    try:
        return Stint.model_validate(dict(stints[-1]))
    except ValidationError:
        _logger.debug("Skipping stint of %s: %s", racing_number, stints[-1])
        return None


def latest_car_telemetry(feeds: Mapping[str, Any], racing_number: str) -> CarTelemetry | None:
    """Channels of the newest ``CarData`` entry for one car."""
    entries = collection_values(_section(feeds, "CarData", "Entries"))
    if not entries:
        return None
    channels = _section(entries[-1], "Cars", racing_number, "Channels")
    if not isinstance(channels, Mapping):
        return None
    try:
        return CarTelemetry.model_validate(dict(channels))
    except ValidationError:
        return None


def race_control_count(feeds: Mapping[str, Any], predicate: EventPredicate | None = None) -> int:
    """Number of race-control messages, optionally filtered."""
    events = events_from_feed(_section(feeds, "RaceControlMessages", "Messages"))
    if predicate is not None:
        events = [event for event in events if predicate(event)]
    return len(events)
