"""High-level async client for a live timing feed."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import aiohttp

from pymonaco._connection import ConnectionManager, ConnectionState
from pymonaco._delay import DelayBuffer
from pymonaco._transport import AiohttpTransport, Transport, build_ws_url
from pymonaco.clock import remaining_now
from pymonaco.config import MonacoConfig
from pymonaco.exceptions import MonacoError
from pymonaco.highlight import HighlightState, HighlightTracker
from pymonaco.models.clock import ClockAnchor
from pymonaco.models.race_control import TimedEvent
from pymonaco.models.timing import TimingLine
from pymonaco.state.events import Feed, SnapshotUpdate
from pymonaco.state.store import LiveStateStore, SnapshotListener
from pymonaco.timeline import EventPredicate, elapsed_since, exclude_blue_flags, race_control_timeline
from pymonaco.views import SessionPhase, race_control_count, session_phase, standings

_logger = logging.getLogger(__name__)


class MonacoClient:
    """Async client that keeps a live snapshot of the feed.

    Usage::

        async with MonacoClient(config) as client:
            await client.wait_connected()
            print(client.phase, client.clock_remaining())
    """

    def __init__(
        self,
        config: MonacoConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        on_snapshot: SnapshotListener | None = None,
        on_race_control: Callable[[int], None] | None = None,
        on_sync_tick: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._clock = clock
        self._on_race_control = on_race_control
        self._on_sync_tick = on_sync_tick
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connection: ConnectionManager | None = None
        self._sync_handle: asyncio.TimerHandle | None = None
        self._race_control_seen = 0
        self._closed = False

        self._store = LiveStateStore()
        self._delay = DelayBuffer(self._on_release, delay_ms=config.delay_ms, clock=clock)
        self._highlights = HighlightTracker(window=config.highlight_window)
        self._store.subscribe(self._on_store_update)
        if on_snapshot is not None:
            self._store.subscribe(on_snapshot)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MonacoClient:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Open the feed connection.

        A closed client cannot be restarted; create a new one instead.
        """
        if self._closed:
            raise MonacoError("Client is closed; create a new MonacoClient to reconnect")
        if self._connection is not None:
            return
        self._loop = asyncio.get_running_loop()
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = AiohttpTransport(self._http_session, heartbeat=self._config.heartbeat)
        self._connection = ConnectionManager(
            url=build_ws_url(self._config.page_url, self._config.ws_path),
            transport=transport,
            on_message=self._on_frame,
            on_connectivity=self._on_connectivity,
            on_new_session=self._on_new_session,
            reconnect_delay=self._config.reconnect_delay,
            force_reconnect_grace=self._config.force_reconnect_grace,
            clock=self._clock,
            loop=self._loop,
        )
        self._connection.open()

    async def close(self) -> None:
        """Stop the connection and cancel every pending timer."""
        self._closed = True
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
        self._delay.close()
        self._highlights.close()
        self._cancel_sync_tick()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._loop = None

    def _require_connection(self) -> ConnectionManager:
        if self._connection is None:
            raise MonacoError("Client not started. Use 'async with MonacoClient(...) as client:'")
        return self._connection

    # ------------------------------------------------------------------
    # Operator control
    # ------------------------------------------------------------------

    def set_delay(self, delay_ms: int) -> None:
        """Change the playback delay; the feed restarts as a new session."""
        connection = self._require_connection()
        _logger.info("Playback delay set to %d ms", delay_ms)
        self._delay.set_delay(delay_ms)
        self._cancel_sync_tick()
        connection.force_reconnect()

    async def wait_connected(self, timeout: float | None = None) -> bool:
        return await self._require_connection().wait_connected(timeout)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    @property
    def connection_state(self) -> ConnectionState:
        if self._connection is None:
            return ConnectionState.DISCONNECTED
        return self._connection.state

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._connection.connected

    @property
    def delay_ms(self) -> int:
        return self._delay.delay_ms

    @property
    def syncing(self) -> bool:
        return self._delay.syncing

    @property
    def sync_remaining(self) -> float:
        return self._delay.sync_remaining

    @property
    def updated_at(self) -> datetime | None:
        return self._store.updated_at

    @property
    def malformed_count(self) -> int:
        return self._store.malformed_count

    @property
    def phase(self) -> SessionPhase:
        return session_phase(connected=self.connected, syncing=self.syncing, feeds=self._store.snapshot())

    def snapshot(self) -> dict[str, Any]:
        return self._store.snapshot()

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def timeline(self, predicate: EventPredicate | None = None) -> list[TimedEvent]:
        """Race-control messages and session statuses, most recent first."""
        return race_control_timeline(self._store.snapshot(), predicate)

    def elapsed(self, event: TimedEvent, now: datetime | None = None) -> str:
        """Age of a timeline event as ``mm:ss`` (``--:--`` once too old)."""
        return elapsed_since(event.utc, now, limit=self._config.elapsed_limit)

    def standings(self) -> list[TimingLine]:
        return standings(self._store.snapshot())

    def highlight(self, racing_number: str) -> HighlightState:
        return self._highlights.state(racing_number)

    def highlights(self) -> dict[str, HighlightState]:
        return self._highlights.states()

    def clock_anchor(self) -> ClockAnchor | None:
        return ClockAnchor.from_feed(self._store.get_feed(Feed.EXTRAPOLATED_CLOCK))

    def clock_remaining(self, now: datetime | None = None) -> str | None:
        """Session countdown as ``HH:MM:SS``, compensated for the playback delay."""
        return remaining_now(self.clock_anchor(), self._delay.delay_ms, now)

    # ------------------------------------------------------------------
    # Internal plumbing
    # ------------------------------------------------------------------

    def _on_frame(self, raw: str | bytes, received_at: float) -> None:
        self._delay.submit(raw, received_at)
        if self._on_sync_tick is not None and self._sync_handle is None and self._delay.syncing:
            self._schedule_sync_tick()

    def _on_release(self, raw: Any, received_at: float) -> None:
        self._store.apply_raw(raw, received_at=datetime.fromtimestamp(received_at, UTC))

    def _on_store_update(self, update: SnapshotUpdate) -> None:
        timing = update.feeds.get(Feed.TIMING_DATA) if Feed.TIMING_DATA in update.changed else None
        lines = timing.get("Lines") if isinstance(timing, Mapping) else None
        if isinstance(lines, Mapping):
            self._highlights.observe_lines(lines)
        if Feed.RACE_CONTROL_MESSAGES in update.changed:
            self._check_race_control(update.feeds)

    def _check_race_control(self, feeds: Mapping[str, Any]) -> None:
        count = race_control_count(feeds, exclude_blue_flags)
        previous = self._race_control_seen
        self._race_control_seen = count
        if count <= previous or self._on_race_control is None:
            return
        try:
            self._on_race_control(count)
        except Exception:
            _logger.exception("Race control notification hook failed")

    def _on_connectivity(self, connected: bool) -> None:
        if connected:
            _logger.info("Connected to live feed")
        else:
            _logger.info("Disconnected from live feed")

    def _on_new_session(self) -> None:
        self._store.reset()
        self._highlights.close()
        self._race_control_seen = 0

    def _schedule_sync_tick(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._sync_handle = loop.call_later(self._config.sync_tick_interval, self._sync_tick)

    def _sync_tick(self) -> None:
        self._sync_handle = None
        remaining = self._delay.sync_remaining
        if self._on_sync_tick is not None:
            try:
                self._on_sync_tick(remaining)
            except Exception:
                _logger.exception("Sync tick listener failed")
        if self._delay.syncing:
            self._schedule_sync_tick()

    def _cancel_sync_tick(self) -> None:
        if self._sync_handle is not None:
            self._sync_handle.cancel()
            self._sync_handle = None
