"""Helpers for safe debug logging.

Live timing frames can be large (full ``CarData`` / ``Position`` blobs), so
anything echoed into logs is truncated first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def preview_for_log(value: Any, *, max_string: int = 256, max_items: int = 20, _depth: int = 0) -> Any:
    """Return a truncated copy of *value* suitable for log lines."""
    if _depth > 20:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).decode("utf-8", errors="replace")
        return preview_for_log(text, max_string=max_string, max_items=max_items, _depth=_depth + 1)

    if isinstance(value, Mapping):
        preview: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_items:
                preview["…"] = f"<{len(value) - max_items} more>"
                break
            preview[str(k)] = preview_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
        return preview

    if isinstance(value, Sequence):
        items = [
            preview_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for v in list(value)[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
