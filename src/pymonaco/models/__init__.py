"""Typed views over live feed entries."""

from pymonaco.models._base import FeedTimestamp, MonacoBaseModel
from pymonaco.models.car import CarTelemetry
from pymonaco.models.clock import ClockAnchor
from pymonaco.models.race_control import TimedEvent
from pymonaco.models.timing import Interval, Stint, TimingLine

__all__ = [
    "CarTelemetry",
    "ClockAnchor",
    "FeedTimestamp",
    "Interval",
    "MonacoBaseModel",
    "Stint",
    "TimedEvent",
    "TimingLine",
]
