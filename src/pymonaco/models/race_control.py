"""Timed event model.

Covers both ``RaceControlMessages.Messages`` entries and
``SessionData.StatusSeries`` entries; they share the ``Utc`` timestamp and
are merged into one timeline.
"""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from pymonaco.ingestion.normalize import safe_int, safe_str
from pymonaco.models._base import FeedTimestamp, MonacoBaseModel


class TimedEvent(MonacoBaseModel):
    """A race-control message or session-status entry.

    Immutable once received.
    """

    utc: FeedTimestamp
    """UTC timestamp of the event."""
    category: str | None = None
    """Free-form tag, e.g. ``"Flag"``, ``"Other"``, ``"Drs"``."""
    flag: str | None = None
    message: str | None = None
    lap: int | None = None
    track_status: str | None = None
    session_status: str | None = None

    @field_validator("lap", mode="before")
    @classmethod
    def _parse_lap(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("category", "flag", "message", "track_status", "session_status", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        return safe_str(value)

    @property
    def is_flag(self) -> bool:
        return self.category == "Flag"

    @property
    def flag_lower(self) -> str | None:
        return self.flag.lower() if self.flag else None
