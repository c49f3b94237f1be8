"""Extrapolated session clock anchor (``ExtrapolatedClock`` feed)."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError, field_validator

from pymonaco.ingestion.normalize import parse_duration, safe_bool
from pymonaco.models._base import FeedTimestamp, MonacoBaseModel


class ClockAnchor(MonacoBaseModel):
    """A (remaining, anchor timestamp, extrapolating) triple.

    Replaced wholesale whenever a new ``ExtrapolatedClock`` message arrives.
    """

    remaining: str
    """Remaining session time as sent, ``HH:MM:SS``."""
    utc: FeedTimestamp
    extrapolating: bool = False

    @field_validator("remaining")
    @classmethod
    def _check_remaining(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("extrapolating", mode="before")
    @classmethod
    def _parse_extrapolating(cls, value: Any) -> bool:
        return safe_bool(value)

    @classmethod
    def from_feed(cls, value: Any) -> ClockAnchor | None:
        """Build an anchor from the feed value.

        Returns ``None`` when it is incomplete or ``Remaining`` is not ``HH:MM:SS``.
        """
        if not isinstance(value, dict):
            return None
        try:
            return cls.model_validate(value)
        except ValidationError:
            return None
