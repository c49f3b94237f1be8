"""Timing models.

Mapped from the ``TimingData.Lines`` and ``TimingAppData.Lines`` feeds.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import Field, field_validator

from pymonaco.ingestion.normalize import safe_bool, safe_float, safe_str
from pymonaco.models._base import MonacoBaseModel

_LAPPED_RE = re.compile(r"^\d+\s*L$")
_INTERVAL_RE = re.compile(r"^\+(\d+\.\d+)$")

#: ``Status`` bit patterns the feed uses once a car has taken the chequered flag.
FINISHED_STATUSES: frozenset[int] = frozenset({1088, 1104})

#: Interval (seconds) under which a car counts as close behind the car ahead.
CLOSE_BEHIND_SECONDS = 1.0


class Interval(MonacoBaseModel):
    """Interval to the car ahead."""

    value: str | None = None
    """Interval text, e.g. ``"+0.512"`` or ``"1L"``."""
    catching: bool = False
    """Whether the feed flags the car as catching the one ahead."""

    @field_validator("value", mode="before")
    @classmethod
    def _parse_value(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("catching", mode="before")
    @classmethod
    def _parse_catching(cls, value: Any) -> bool:
        return safe_bool(value)

    @property
    def seconds(self) -> float | None:
        """Interval in seconds when it is a plain ``+x.y`` gap."""
        if self.value is None:
            return None
        match = _INTERVAL_RE.match(self.value.strip())
        if match is None:
            return None
        return safe_float(match.group(1))


class TimingLine(MonacoBaseModel):
    """One competitor's row inside ``TimingData``.

    Lines are replaced wholesale on every update, so a ``TimingLine`` always
    reflects a single delivered row.
    """

    racing_number: str = ""
    """Stable racing-number key of the row."""
    position: int | None = None
    gap_to_leader: str | None = None
    interval_to_position_ahead: Interval | None = None
    in_pit: bool = False
    pit_out: bool = False
    retired: bool = False
    stopped: bool = False
    knocked_out: bool = False
    number_of_pit_stops: int | None = None
    status: int | None = None

    @field_validator("gap_to_leader", mode="before")
    @classmethod
    def _parse_gap(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("in_pit", "pit_out", "retired", "stopped", "knocked_out", mode="before")
    @classmethod
    def _parse_flags(cls, value: Any) -> bool:
        return safe_bool(value)

    @field_validator("position", "number_of_pit_stops", "status", mode="before")
    @classmethod
    def _parse_ints(cls, value: Any) -> int | None:
        parsed = safe_float(value)
        return int(parsed) if parsed is not None else None

    @classmethod
    def from_feed(cls, racing_number: str, value: dict[str, Any]) -> TimingLine:
        """Build a line from a ``TimingData.Lines`` entry keyed by *racing_number*."""
        return cls.model_validate({**value, "RacingNumber": racing_number})

    @property
    def is_out(self) -> bool:
        """Knocked out, retired or stopped."""
        return self.knocked_out or self.retired or self.stopped

    @property
    def is_lapped(self) -> bool:
        """Gap to leader is expressed in laps (``"1 L"``)."""
        return self.gap_to_leader is not None and bool(_LAPPED_RE.match(self.gap_to_leader.strip()))

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    @property
    def is_close_behind(self) -> bool:
        """Within a second of the car ahead while on track."""
        if self.interval_to_position_ahead is None or self.in_pit or self.pit_out:
            return False
        seconds = self.interval_to_position_ahead.seconds
        return seconds is not None and seconds < CLOSE_BEHIND_SECONDS

    @property
    def is_catching(self) -> bool:
        if self.is_close_behind:
            return True
        return self.interval_to_position_ahead is not None and self.interval_to_position_ahead.catching


class Stint(MonacoBaseModel):
    """One tyre stint from ``TimingAppData.Lines.<number>.Stints``."""

    compound: str | None = None
    new: bool | None = None
    total_laps: int | None = None

    @field_validator("new", mode="before")
    @classmethod
    def _parse_new(cls, value: Any) -> bool | None:
        if value is None:
            return None
        return safe_bool(value)

    @field_validator("total_laps", mode="before")
    @classmethod
    def _parse_laps(cls, value: Any) -> int | None:
        parsed = safe_float(value)
        return int(parsed) if parsed is not None else None
