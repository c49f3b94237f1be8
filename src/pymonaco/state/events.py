"""Normalized feed updates.

Every delivered frame is decoded into a :class:`LiveUpdate`. Only the
state/store layer is allowed to merge them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pymonaco.ingestion.normalize import ensure_utc


class Feed(StrEnum):
    HEARTBEAT = "Heartbeat"
    SESSION_INFO = "SessionInfo"
    SESSION_DATA = "SessionData"
    TRACK_STATUS = "TrackStatus"
    LAP_COUNT = "LapCount"
    EXTRAPOLATED_CLOCK = "ExtrapolatedClock"
    WEATHER_DATA = "WeatherData"
    DRIVER_LIST = "DriverList"
    RACE_CONTROL_MESSAGES = "RaceControlMessages"
    TIMING_DATA = "TimingData"
    TIMING_APP_DATA = "TimingAppData"
    TIMING_STATS = "TimingStats"
    CAR_DATA = "CarData"
    POSITION = "Position"
    TEAM_RADIO = "TeamRadio"


class LiveUpdate(BaseModel):
    """A decoded, not yet merged feed frame."""

    model_config = ConfigDict(frozen=True)

    feeds: dict[str, Any] = Field(default_factory=dict, description="Top-level feed name -> value")
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("received_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)


@dataclass(frozen=True)
class SnapshotUpdate:
    """What subscribers receive after every successful apply.

    ``feeds`` is a read-only view over a private copy of the snapshot.
    """

    feeds: Mapping[str, Any]
    updated_at: datetime
    changed: frozenset[str] = frozenset()
    """Feed names present in the message that produced this snapshot."""
