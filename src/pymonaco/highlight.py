"""Position-change highlighting.

Each tracked entity (a racing number) is either *Stable* or *Changed* for a
fixed window after its position moved. A newer change restarts the window;
there is never more than one pending expiry per entity.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pymonaco.ingestion.normalize import safe_int

_logger = logging.getLogger(__name__)

DEFAULT_HIGHLIGHT_WINDOW = 5.0


class HighlightDirection(enum.StrEnum):
    IMPROVED = "improved"
    WORSENED = "worsened"


@dataclass(frozen=True, slots=True)
class HighlightState:
    """Highlight signal for one entity.

    ``direction is None`` means *Stable*. ``expires_at`` is on the event
    loop's clock (``loop.time()``).
    """

    direction: HighlightDirection | None = None
    expires_at: float | None = None

    @property
    def is_changed(self) -> bool:
        return self.direction is not None


STABLE = HighlightState()


@dataclass(slots=True)
class _Tracked:
    ordinal: int | None = None
    state: HighlightState = STABLE
    handle: asyncio.TimerHandle | None = None


class HighlightTracker:
    """Per-entity transient highlight state with automatic expiry."""

    def __init__(
        self,
        *,
        window: float = DEFAULT_HIGHLIGHT_WINDOW,
        loop: asyncio.AbstractEventLoop | None = None,
        on_change: Callable[[str, HighlightState], None] | None = None,
    ) -> None:
        self._window = window
        self._loop = loop
        self._on_change = on_change
        self._entities: dict[str, _Tracked] = {}

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def observe(self, entity: str, ordinal: int) -> HighlightState:
        """Record the latest ordinal for *entity* and return its state."""
        tracked = self._entities.get(entity)
        if tracked is None:
            # First sighting: nothing to compare against.
            self._entities[entity] = _Tracked(ordinal=ordinal)
            return STABLE

        previous = tracked.ordinal
        tracked.ordinal = ordinal
        if previous is None or ordinal == previous:
            return self.state(entity)

        direction = HighlightDirection.IMPROVED if ordinal < previous else HighlightDirection.WORSENED
        loop = self._require_loop()
        if tracked.handle is not None:
            tracked.handle.cancel()
        expires_at = loop.time() + self._window
        tracked.state = HighlightState(direction=direction, expires_at=expires_at)
        tracked.handle = loop.call_at(expires_at, self._expire, entity, tracked.state)
        _logger.debug("Position change entity=%s %s -> %s (%s)", entity, previous, ordinal, direction)
        self._notify(entity, tracked.state)
        return tracked.state

    def observe_lines(self, lines: Mapping[str, Any]) -> None:
        """Observe every ``TimingData.Lines`` entry; unparseable positions are ignored."""
        for racing_number, line in lines.items():
            if not isinstance(line, Mapping):
                continue
            position = safe_int(line.get("Position"))
            if position is None:
                continue
            self.observe(str(racing_number), position)

    def state(self, entity: str) -> HighlightState:
        tracked = self._entities.get(entity)
        if tracked is None or not tracked.state.is_changed:
            return STABLE
        expires_at = tracked.state.expires_at
        if expires_at is not None and self._loop is not None and self._loop.time() >= expires_at:
            return STABLE
        return tracked.state

    def states(self) -> dict[str, HighlightState]:
        return {entity: self.state(entity) for entity in self._entities}

    def pending_expiries(self) -> int:
        """Number of scheduled expiry timers."""
        return sum(1 for tracked in self._entities.values() if tracked.handle is not None)

    def forget(self, entity: str) -> None:
        """Stop tracking *entity* and cancel its expiry."""
        tracked = self._entities.pop(entity, None)
        if tracked is not None and tracked.handle is not None:
            tracked.handle.cancel()

    def close(self) -> None:
        """Cancel every pending expiry and drop all state."""
        for tracked in self._entities.values():
            if tracked.handle is not None:
                tracked.handle.cancel()
        self._entities.clear()

    def _expire(self, entity: str, state: HighlightState) -> None:
        tracked = self._entities.get(entity)
        if tracked is None or tracked.state is not state:
            return
        tracked.state = STABLE
        tracked.handle = None
        self._notify(entity, STABLE)

    def _notify(self, entity: str, state: HighlightState) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(entity, state)
        except Exception:
            _logger.exception("Highlight listener failed for entity=%s", entity)
