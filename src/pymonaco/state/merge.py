"""Feed merge rules.

Per-feed overwrite rules for folding a delivered feed value into the
snapshot:

1. Feeds without an entry in :data:`KEYED_PATHS` are replaced wholesale
   (``Heartbeat``, ``ExtrapolatedClock``, ``TrackStatus``, ``LapCount``,
   ``CarData``, ``SessionInfo`` ...).
2. Feeds with an entry are dict-merged down to their keyed collections.
   Keys outside a keyed collection are replaced wholesale.
3. Inside a keyed collection every entry (one timing line, one driver, one
   message) is replaced wholesale, never merged field by field. Entries not
   present in the update are kept.
4. A keyed collection sent as a list is re-keyed by string index first, so a
   later ``{"3": ...}`` delta replaces the fourth element.
5. Incoming values are deep copied; the snapshot never aliases a message.

These functions never mutate their inputs.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

Path = tuple[str, ...]

#: Feed name -> paths (relative to the feed value) of collections keyed by a
#: stable identifier. ``()`` means the feed value itself is the collection.
KEYED_PATHS: dict[str, tuple[Path, ...]] = {
    "TimingData": (("Lines",),),
    "TimingAppData": (("Lines",),),
    "TimingStats": (("Lines",),),
    "DriverList": ((),),
    "RaceControlMessages": (("Messages",),),
    "SessionData": (("Series",), ("StatusSeries",)),
    "TeamRadio": (("Captures",),),
}


def _as_keyed(value: Any) -> dict[str, Any] | None:
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(index): item for index, item in enumerate(value)}
    return None


def _merge_collection(existing: Any, incoming: Any) -> Any:
    current = _as_keyed(existing)
    if current is None or not isinstance(incoming, dict):
        # Lists (full resends) and scalars replace the collection.
        return copy.deepcopy(incoming)
    merged = dict(current)
    for key, entry in incoming.items():
        merged[key] = copy.deepcopy(entry)
    return merged


def _merge_at(existing: Any, incoming: Any, keyed: tuple[Path, ...], prefix: Path) -> Any:
    if prefix in keyed:
        return _merge_collection(existing, incoming)

    descends = any(len(path) > len(prefix) and path[: len(prefix)] == prefix for path in keyed)
    if not descends or not isinstance(existing, dict) or not isinstance(incoming, dict):
        return copy.deepcopy(incoming)

    merged = dict(existing)
    for key, value in incoming.items():
        merged[key] = _merge_at(existing.get(key), value, keyed, (*prefix, key))
    return merged


def merge_feed(name: str, existing: Any, incoming: Any) -> Any:
    """Return the new value of feed *name* after folding in *incoming*.

    Untouched parts of *existing* are shared with the result, so callers must
    treat snapshot values as read-only (the store hands out copies).
    """
    keyed = KEYED_PATHS.get(name)
    if not keyed:
        return copy.deepcopy(incoming)
    return _merge_at(existing, incoming, keyed, ())


def merge_feeds(snapshot: Mapping[str, Any], feeds: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new snapshot with every feed in *feeds* merged in.

    Feeds absent from *feeds* are carried over unchanged.
    """
    result = dict(snapshot)
    for name, value in feeds.items():
        result[name] = merge_feed(name, snapshot.get(name), value)
    return result
