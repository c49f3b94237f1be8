"""Car telemetry model.

Mapped from the per-car ``Channels`` dict of the latest ``CarData`` entry.
Channel numbers are the feed's own keys.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

#: DRS channel values meaning the flap is open.
DRS_OPEN_VALUES: frozenset[int] = frozenset({10, 12, 14})

#: RPM treated as 100% on the rev bar.
MAX_RPM = 15000

#: Speed (km/h) under which a car on track counts as slow.
SLOW_SPEED_KMH = 40


class CarTelemetry(BaseModel):
    """Latest telemetry channels for one car."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    rpm: int | None = Field(default=None, validation_alias="0")
    speed: int | None = Field(default=None, validation_alias="2")
    gear: int | None = Field(default=None, validation_alias="3")
    throttle: int | None = Field(default=None, validation_alias="4")
    brake: int | None = Field(default=None, validation_alias="5")
    drs: int | None = Field(default=None, validation_alias="45")

    @property
    def rpm_percent(self) -> float | None:
        if self.rpm is None:
            return None
        return self.rpm / MAX_RPM * 100

    @property
    def throttle_percent(self) -> int | None:
        if self.throttle is None:
            return None
        return min(100, self.throttle)

    @property
    def brake_applied(self) -> bool:
        return self.brake is not None and self.brake > 0

    @property
    def drs_open(self) -> bool:
        return self.drs in DRS_OPEN_VALUES

    @property
    def is_slow(self) -> bool:
        return self.speed is not None and self.speed < SLOW_SPEED_KMH
