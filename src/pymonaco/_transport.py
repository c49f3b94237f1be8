"""WebSocket transport for the live feed."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit

import aiohttp

from pymonaco.exceptions import MonacoConfigError, MonacoTransportError

_logger = logging.getLogger(__name__)

_WS_SCHEMES: dict[str, str] = {
    "http": "ws",
    "https": "wss",
    "ws": "ws",
    "wss": "wss",
}


def build_ws_url(page_url: str, path: str = "/ws") -> str:
    """Derive the feed endpoint from the page URL.

    The HTTP(S) scheme becomes its WebSocket equivalent, hostname and
    explicit port are kept, and the path is replaced by *path*.
    """
    parts = urlsplit(page_url.strip())
    scheme = _WS_SCHEMES.get(parts.scheme.lower())
    if scheme is None:
        raise MonacoConfigError(f"Unsupported page URL scheme: {page_url!r}")
    host = parts.hostname
    if not host:
        raise MonacoConfigError(f"Page URL has no host: {page_url!r}")
    if ":" in host:
        host = f"[{host}]"
    try:
        port = parts.port
    except ValueError as exc:
        raise MonacoConfigError(f"Page URL has an invalid port: {page_url!r}") from exc
    netloc = f"{host}:{port}" if port else host
    return urlunsplit((scheme, netloc, path, "", ""))


class WebSocketConnection(Protocol):
    """An established feed connection."""

    def frames(self) -> AsyncIterator[str | bytes]:
        """Yield payloads until the peer closes; errors raise ``MonacoTransportError``."""
        ...

    async def close(self) -> None: ...


class Transport(Protocol):
    """Structural transport interface used by the connection manager.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`AiohttpTransport`) concrete.
    """

    async def connect(self, url: str) -> WebSocketConnection: ...


class _AiohttpConnection:
    def __init__(self, ws: aiohttp.ClientWebSocketResponse, url: str) -> None:
        self._ws = ws
        self._url = url

    async def frames(self) -> AsyncIterator[str | bytes]:
        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    yield msg.data
                elif msg.type == aiohttp.WSMsgType.BINARY:
                    yield msg.data
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise MonacoTransportError(
                        f"WebSocket error on {self._url}: {self._ws.exception()}",
                        url=self._url,
                    )
        except aiohttp.ClientError as exc:
            raise MonacoTransportError(f"WebSocket read on {self._url} failed: {exc}", url=self._url) from exc
        _logger.debug("WebSocket closed by peer url=%s code=%s", self._url, self._ws.close_code)

    async def close(self) -> None:
        if not self._ws.closed:
            await self._ws.close()


class AiohttpTransport:
    """Feed transport over ``aiohttp`` client WebSockets."""

    def __init__(self, http_session: aiohttp.ClientSession, *, heartbeat: float | None = None) -> None:
        self._http = http_session
        self._heartbeat = heartbeat

    async def connect(self, url: str) -> WebSocketConnection:
        _logger.debug("WS CONNECT %s", url)
        try:
            ws = await self._http.ws_connect(url, heartbeat=self._heartbeat, autoping=True)
        except aiohttp.ClientError as exc:
            raise MonacoTransportError(f"Connect to {url} failed: {exc}", url=url) from exc
        except OSError as exc:
            raise MonacoTransportError(f"Connect to {url} failed: {exc}", url=url) from exc
        return _AiohttpConnection(ws, url)
