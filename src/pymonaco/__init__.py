"""pymonaco - Async Python client for live motorsport timing feeds."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pymonaco")
except PackageNotFoundError:
    __version__ = "0+local"
from pymonaco._connection import ConnectionState
from pymonaco.client import MonacoClient
from pymonaco.clock import extrapolate_remaining, remaining_now
from pymonaco.config import MonacoConfig
from pymonaco.exceptions import (
    MonacoConfigError,
    MonacoError,
    MonacoMalformedMessageError,
    MonacoTransportError,
)
from pymonaco.highlight import STABLE, HighlightDirection, HighlightState, HighlightTracker
from pymonaco.models import (
    CarTelemetry,
    ClockAnchor,
    Interval,
    Stint,
    TimedEvent,
    TimingLine,
)
from pymonaco.state.events import LiveUpdate, SnapshotUpdate
from pymonaco.state.store import LiveStateStore
from pymonaco.timeline import ELAPSED_UNKNOWN, elapsed_since, exclude_blue_flags, merge_events
from pymonaco.views import SessionPhase

__all__ = [
    "__version__",
    "CarTelemetry",
    "ClockAnchor",
    "ConnectionState",
    "ELAPSED_UNKNOWN",
    "HighlightDirection",
    "HighlightState",
    "HighlightTracker",
    "Interval",
    "LiveStateStore",
    "LiveUpdate",
    "MonacoClient",
    "MonacoConfig",
    "MonacoConfigError",
    "MonacoError",
    "MonacoMalformedMessageError",
    "MonacoTransportError",
    "STABLE",
    "SessionPhase",
    "SnapshotUpdate",
    "Stint",
    "TimedEvent",
    "TimingLine",
    "elapsed_since",
    "exclude_blue_flags",
    "extrapolate_remaining",
    "merge_events",
    "remaining_now",
]
