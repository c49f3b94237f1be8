"""Custom exception hierarchy for pymonaco."""

from __future__ import annotations


class MonacoError(Exception):
    """Base exception for all pymonaco errors."""


class MonacoConfigError(MonacoError):
    """Invalid or missing configuration."""


class MonacoTransportError(MonacoError):
    """WebSocket-level failure (connect refused, handshake, dropped socket)."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
    ) -> None:
        self.url = url
        super().__init__(message)


class MonacoMalformedMessageError(MonacoError):
    """A feed frame could not be decoded into a feed update.

    The frame is discarded; the live snapshot is never touched by it.
    """

    def __init__(
        self,
        message: str,
        *,
        preview: str = "",
    ) -> None:
        self.preview = preview
        super().__init__(message)
