"""Frame decoding.

Turns a raw WebSocket text frame into a :class:`LiveUpdate`. Anything that is
not a JSON object keyed by feed name raises
:class:`MonacoMalformedMessageError`; the caller discards the frame.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pymonaco._logsafe import preview_for_log
from pymonaco.exceptions import MonacoMalformedMessageError
from pymonaco.state.events import LiveUpdate


def decode_message(raw: str | bytes | bytearray | Mapping[str, Any], *, received_at: datetime | None = None) -> LiveUpdate:
    """Decode one frame into a feed update."""
    if isinstance(raw, Mapping):
        payload: Any = dict(raw)
    else:
        if isinstance(raw, (bytes, bytearray)):
            try:
                text = bytes(raw).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MonacoMalformedMessageError(
                    f"Frame is not valid UTF-8: {exc}",
                    preview=str(preview_for_log(raw)),
                ) from exc
        else:
            text = raw
        try:
            payload = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise MonacoMalformedMessageError(
                f"Frame is not JSON: {exc}",
                preview=str(preview_for_log(text)),
            ) from exc

    if not isinstance(payload, dict):
        raise MonacoMalformedMessageError(
            f"Frame decoded to {type(payload).__name__}, expected an object",
            preview=str(preview_for_log(payload)),
        )
    bad_keys = [key for key in payload if not isinstance(key, str) or not key]
    if bad_keys:
        raise MonacoMalformedMessageError(
            f"Frame has invalid feed names: {bad_keys!r}",
            preview=str(preview_for_log(payload)),
        )

    if received_at is None:
        return LiveUpdate(feeds=payload)
    return LiveUpdate(feeds=payload, received_at=received_at)
