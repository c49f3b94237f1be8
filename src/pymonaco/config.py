"""Client configuration for pymonaco."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pymonaco.exceptions import MonacoConfigError


def _env_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise MonacoConfigError(f"{name} must be a number, got {value!r}") from exc


def _env_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise MonacoConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class MonacoConfig:
    """Engine configuration.

    Parameters
    ----------
    page_url : str
        URL of the page serving the feed. The WebSocket endpoint is derived
        from its scheme, host and port.
    ws_path : str
        Fixed path of the feed endpoint on that host.
    delay_ms : int
        Initial playback delay in milliseconds applied to the whole feed.
    reconnect_delay : float
        Seconds to wait after a close before reconnecting.
    force_reconnect_grace : float
        Seconds between closing the transport and reopening it when the
        operator changes the delay.
    highlight_window : float
        Seconds a position change stays highlighted.
    elapsed_limit : float
        Age in seconds above which race-control events show as unknown.
    sync_tick_interval : float
        Seconds between sync progress notifications while syncing.
    heartbeat : float or None
        aiohttp WebSocket heartbeat interval. ``None`` disables pings.
    """

    page_url: str = "http://localhost:5000"
    ws_path: str = "/ws"
    delay_ms: int = 0
    reconnect_delay: float = 1.0
    force_reconnect_grace: float = 0.1
    highlight_window: float = 5.0
    elapsed_limit: float = 3600.0
    sync_tick_interval: float = 0.25
    heartbeat: float | None = None

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise MonacoConfigError(f"delay_ms must be non-negative, got {self.delay_ms}")
        if not self.ws_path.startswith("/"):
            raise MonacoConfigError(f"ws_path must start with '/', got {self.ws_path!r}")
        for name in ("reconnect_delay", "force_reconnect_grace", "highlight_window", "sync_tick_interval"):
            if getattr(self, name) < 0:
                raise MonacoConfigError(f"{name} must be non-negative")
        if self.elapsed_limit <= 0:
            raise MonacoConfigError("elapsed_limit must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> MonacoConfig:
        """Create configuration from environment variables.

        Reads optional ``MONACO_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        MonacoConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "MONACO_PAGE_URL": "page_url",
            "MONACO_WS_PATH": "ws_path",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        delay_env = env.get("MONACO_DELAY_MS")
        if delay_env is not None and "delay_ms" not in overrides:
            config_kwargs["delay_ms"] = _env_int(delay_env, "MONACO_DELAY_MS")

        _ENV_FLOAT_MAP = {
            "MONACO_RECONNECT_DELAY": "reconnect_delay",
            "MONACO_FORCE_RECONNECT_GRACE": "force_reconnect_grace",
            "MONACO_HIGHLIGHT_WINDOW": "highlight_window",
            "MONACO_ELAPSED_LIMIT": "elapsed_limit",
            "MONACO_SYNC_TICK_INTERVAL": "sync_tick_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(val, env_key)

        heartbeat_env = env.get("MONACO_HEARTBEAT")
        if heartbeat_env is not None and "heartbeat" not in overrides:
            config_kwargs["heartbeat"] = _env_float(heartbeat_env, "MONACO_HEARTBEAT") if heartbeat_env else None

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
