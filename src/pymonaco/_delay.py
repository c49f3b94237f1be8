"""Playback delay buffer.

Holds delivered frames for a uniform delay and releases them in arrival
order. A single timer tracks the head of the queue; since the delay is the
same for every envelope, releasing from the head preserves FIFO order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pymonaco.exceptions import MonacoConfigError

_logger = logging.getLogger(__name__)

ReleaseCallback = Callable[[Any, float], None]


@dataclass(frozen=True, slots=True)
class DelayedEnvelope:
    """A held frame. Times are epoch seconds."""

    raw: Any
    received_at: float
    due_at: float


class DelayBuffer:
    """FIFO delay line in front of the state store.

    Parameters
    ----------
    on_release
        Called as ``on_release(raw, received_at)`` exactly once per
        submitted frame, in submission order.
    delay_ms
        Uniform delay in milliseconds.
    clock
        Wall clock in epoch seconds.
    """

    def __init__(
        self,
        on_release: ReleaseCallback,
        *,
        delay_ms: int = 0,
        clock: Callable[[], float] = time.time,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._validate(delay_ms)
        self._on_release = on_release
        self._delay_ms = delay_ms
        self._clock = clock
        self._loop = loop
        self._queue: deque[DelayedEnvelope] = deque()
        self._handle: asyncio.TimerHandle | None = None
        self._sync_target: float | None = None
        self._synced = False
        self._closed = False

    @staticmethod
    def _validate(delay_ms: int) -> None:
        if isinstance(delay_ms, bool) or not isinstance(delay_ms, int) or delay_ms < 0:
            raise MonacoConfigError(f"delay_ms must be a non-negative integer, got {delay_ms!r}")

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def pending(self) -> int:
        """Number of frames held."""
        return len(self._queue)

    @property
    def syncing(self) -> bool:
        """True until enough delayed history exists to show a snapshot.

        Only ever true with a positive delay: from the first submission until
        ``first_submission + delay``. Latches false until :meth:`reset`.
        """
        if self._sync_target is None or self._synced:
            return False
        if self._clock() >= self._sync_target:
            self._synced = True
            return False
        return True

    @property
    def sync_remaining(self) -> float:
        """Seconds until syncing ends (0.0 when not syncing)."""
        if not self.syncing:
            return 0.0
        assert self._sync_target is not None  # noqa: S101
        return max(0.0, self._sync_target - self._clock())

    def set_delay(self, delay_ms: int) -> None:
        """Change the delay. Held frames are dropped and the sync horizon restarts."""
        self._validate(delay_ms)
        self._delay_ms = delay_ms
        self.reset()

    def submit(self, raw: Any, received_at: float | None = None) -> None:
        """Hold *raw* until ``received_at + delay``."""
        if self._closed:
            return
        arrived = received_at if received_at is not None else self._clock()
        if self._sync_target is None and not self._synced and self._delay_ms > 0:
            self._sync_target = arrived + self._delay_ms / 1000.0
        self._queue.append(DelayedEnvelope(raw=raw, received_at=arrived, due_at=arrived + self._delay_ms / 1000.0))
        if self._handle is None:
            self._schedule()

    def flush_due(self, now: float | None = None) -> int:
        """Release every envelope due at *now*, oldest first. Returns how many."""
        current = now if now is not None else self._clock()
        released = 0
        while self._queue and self._queue[0].due_at <= current:
            envelope = self._queue.popleft()
            released += 1
            try:
                self._on_release(envelope.raw, envelope.received_at)
            except Exception:
                _logger.exception("Delay buffer release callback failed")
        return released

    def reset(self) -> None:
        """Cancel the timer, drop held frames and restart the sync horizon."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        dropped = len(self._queue)
        self._queue.clear()
        self._sync_target = None
        self._synced = False
        if dropped:
            _logger.debug("Delay buffer reset, dropped %d held frames", dropped)

    def close(self) -> None:
        """Reset and refuse further frames."""
        self.reset()
        self._closed = True

    def _schedule(self) -> None:
        if not self._queue:
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        wait = max(0.0, self._queue[0].due_at - self._clock())
        self._handle = self._loop.call_later(wait, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        self.flush_due()
        self._schedule()
