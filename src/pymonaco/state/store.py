"""Deterministic in-memory live snapshot store.

This is the only component allowed to merge delivered feed updates.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from pymonaco.exceptions import MonacoMalformedMessageError
from pymonaco.ingestion.decode import decode_message
from pymonaco.state.events import LiveUpdate, SnapshotUpdate
from pymonaco.state.merge import merge_feeds

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SnapshotUpdate], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LiveStateStore:
    """In-memory store for the merged live snapshot.

    Given the same sequence of :class:`LiveUpdate`\\ s from an empty store, it
    produces the same snapshot. One store holds exactly one session; call
    :meth:`reset` when a new session starts.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._feeds: dict[str, Any] = {}
        self._updated_at: datetime | None = None
        self._listeners: list[SnapshotListener] = []
        self.malformed_count = 0

    @property
    def updated_at(self) -> datetime | None:
        """When the last successful apply happened."""
        return self._updated_at

    @property
    def feed_names(self) -> frozenset[str]:
        return frozenset(self._feeds)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register *listener* for every republished snapshot; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply(self, update: LiveUpdate) -> None:
        """Merge a decoded update and republish the snapshot."""
        # Merge into a new mapping and swap it in, so a republish never sees a
        # half-applied message.
        self._feeds = merge_feeds(self._feeds, update.feeds)
        self._updated_at = self._clock()
        self._publish(frozenset(update.feeds))

    def apply_raw(self, raw: str | bytes | Mapping[str, Any], *, received_at: datetime | None = None) -> bool:
        """Decode and apply a raw frame.

        Malformed frames are logged and discarded; the snapshot is left
        unchanged and ``False`` is returned.
        """
        try:
            update = decode_message(raw, received_at=received_at)
        except MonacoMalformedMessageError as exc:
            self.malformed_count += 1
            _logger.warning("Discarding malformed frame: %s preview=%s", exc, exc.preview)
            return False
        self.apply(update)
        return True

    def reset(self) -> None:
        """Drop the snapshot (a new session is starting)."""
        self._feeds = {}
        self._updated_at = None
        _logger.debug("Live snapshot reset")

    def get_feed(self, name: str) -> Any:
        """Get a copy of one feed, or ``None`` if it was never delivered."""
        value = self._feeds.get(name)
        return copy.deepcopy(value) if value is not None else None

    def snapshot(self) -> dict[str, Any]:
        """Get a copy of the whole snapshot."""
        return copy.deepcopy(self._feeds)

    def _publish(self, changed: frozenset[str]) -> None:
        if not self._listeners:
            return
        assert self._updated_at is not None  # noqa: S101
        update = SnapshotUpdate(
            feeds=MappingProxyType(copy.deepcopy(self._feeds)),
            updated_at=self._updated_at,
            changed=changed,
        )
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                _logger.exception("Snapshot listener failed")
