"""Connection lifecycle for the live feed.

Owns:
- opening the WebSocket and reading frames on one task
- the fixed-backoff reconnect timer
- the forced reconnect used when the playback delay changes
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
import time
from collections.abc import Callable

from pymonaco._transport import Transport, WebSocketConnection
from pymonaco.exceptions import MonacoTransportError

_logger = logging.getLogger(__name__)

MessageCallback = Callable[[str | bytes, float], None]


class ConnectionState(enum.StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager:
    """Keeps one feed connection alive until :meth:`close`.

    ``Disconnected → Connecting → Connected → Disconnected → Connecting``;
    a close schedules exactly one reconnect after ``reconnect_delay``
    seconds. Frames are handed to ``on_message(raw, received_at)`` as they
    arrive; ``received_at`` is epoch seconds.
    """

    def __init__(
        self,
        *,
        url: str,
        transport: Transport,
        on_message: MessageCallback,
        on_connectivity: Callable[[bool], None] | None = None,
        on_new_session: Callable[[], None] | None = None,
        reconnect_delay: float = 1.0,
        force_reconnect_grace: float = 0.1,
        clock: Callable[[], float] = time.time,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._url = url
        self._transport = transport
        self._on_message = on_message
        self._on_connectivity = on_connectivity
        self._on_new_session = on_new_session
        self._reconnect_delay = reconnect_delay
        self._force_reconnect_grace = force_reconnect_grace
        self._clock = clock
        self._loop = loop
        self._state = ConnectionState.DISCONNECTED
        self._connected_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._retry_handle: asyncio.TimerHandle | None = None
        self._grace_handle: asyncio.TimerHandle | None = None
        self._forcing = False
        self._closed = False

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def retry_pending(self) -> bool:
        return self._retry_handle is not None

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def open(self) -> None:
        """Start connecting (no-op while a connection attempt is alive)."""
        if self._closed:
            return
        self._cancel_retry()
        if self._task is not None and not self._task.done():
            return
        self._set_state(ConnectionState.CONNECTING)
        self._task = self._require_loop().create_task(self._run())

    def force_reconnect(self) -> None:
        """Drop the current connection and open a fresh session shortly after.

        The close caused here never schedules a backoff retry.
        """
        if self._closed:
            return
        _logger.debug("Forced reconnect requested url=%s", self._url)
        self._cancel_retry()
        self._forcing = True
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
        self._set_state(ConnectionState.DISCONNECTED)
        if self._grace_handle is not None:
            self._grace_handle.cancel()
        self._grace_handle = self._require_loop().call_later(self._force_reconnect_grace, self._reopen_after_force)

    async def wait_connected(self, timeout: float | None = None) -> bool:
        """Wait until connected; ``False`` on timeout."""
        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout)
        except TimeoutError:
            return False
        return True

    async def close(self) -> None:
        """Tear down: cancel timers, stop the reader and close the socket."""
        self._closed = True
        self._cancel_retry()
        if self._grace_handle is not None:
            self._grace_handle.cancel()
            self._grace_handle = None
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._set_state(ConnectionState.DISCONNECTED)

    def handle_close(self) -> None:
        """React to a closed or failed transport."""
        self._set_state(ConnectionState.DISCONNECTED)
        if self._closed or self._forcing:
            return
        if self._retry_handle is not None:
            return
        _logger.debug("Scheduling reconnect in %.2fs url=%s", self._reconnect_delay, self._url)
        self._retry_handle = self._require_loop().call_later(self._reconnect_delay, self._retry)

    async def _run(self) -> None:
        connection: WebSocketConnection | None = None
        try:
            connection = await self._transport.connect(self._url)
            self._cancel_retry()
            self._set_state(ConnectionState.CONNECTED)
            async for frame in connection.frames():
                self._deliver(frame)
        except MonacoTransportError as exc:
            _logger.debug("Feed transport failed: %s", exc)
        except Exception:
            _logger.debug("Feed reader failed", exc_info=True)
        finally:
            if connection is not None:
                with contextlib.suppress(Exception):
                    await connection.close()
        if asyncio.current_task() is self._task:
            self._task = None
        self.handle_close()

    def _deliver(self, frame: str | bytes) -> None:
        try:
            self._on_message(frame, self._clock())
        except Exception:
            _logger.exception("Frame handler failed")

    def _retry(self) -> None:
        self._retry_handle = None
        self.open()

    def _reopen_after_force(self) -> None:
        self._grace_handle = None
        self._forcing = False
        if self._closed:
            return
        if self._on_new_session is not None:
            try:
                self._on_new_session()
            except Exception:
                _logger.exception("New session hook failed")
        self.open()

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    def _set_state(self, state: ConnectionState) -> None:
        previous = self._state
        if previous == state:
            return
        self._state = state
        _logger.debug("Connection %s -> %s url=%s", previous, state, self._url)
        if state == ConnectionState.CONNECTED:
            self._connected_event.set()
        elif previous == ConnectionState.CONNECTED:
            self._connected_event.clear()
        if (state == ConnectionState.CONNECTED) != (previous == ConnectionState.CONNECTED) and self._on_connectivity:
            try:
                self._on_connectivity(state == ConnectionState.CONNECTED)
            except Exception:
                _logger.exception("Connectivity listener failed")
