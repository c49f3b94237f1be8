from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from pymonaco.exceptions import MonacoTransportError

_CLOSE = object()


class FakeConnection:
    """In-memory feed connection driven by the test."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self.closed = False

    def push(self, frame: str | bytes) -> None:
        self._queue.put_nowait(frame)

    def drop(self) -> None:
        """Peer closes the socket."""
        self._queue.put_nowait(_CLOSE)

    def fail(self, message: str = "connection reset") -> None:
        self._queue.put_nowait(MonacoTransportError(message))

    async def frames(self) -> AsyncIterator[str | bytes]:
        while True:
            item = await self._queue.get()
            if item is _CLOSE:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self) -> None:
        self.closed = True


class FakeTransport:
    def __init__(self, *, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []

    async def connect(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise MonacoTransportError("connection refused", url=url)
        connection = FakeConnection()
        self.connections.append(connection)
        return connection


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


class FakeClock:
    """Settable wall clock in epoch seconds."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def until() -> Callable[..., Any]:
    return wait_until


@pytest.fixture
def flaky_transport() -> FakeTransport:
    """Refuses the first two connection attempts."""
    return FakeTransport(fail_times=2)
