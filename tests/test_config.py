from __future__ import annotations

import pytest

from pymonaco.config import MonacoConfig
from pymonaco.exceptions import MonacoConfigError

_ENV_KEYS = (
    "MONACO_PAGE_URL",
    "MONACO_WS_PATH",
    "MONACO_DELAY_MS",
    "MONACO_RECONNECT_DELAY",
    "MONACO_FORCE_RECONNECT_GRACE",
    "MONACO_HIGHLIGHT_WINDOW",
    "MONACO_ELAPSED_LIMIT",
    "MONACO_SYNC_TICK_INTERVAL",
    "MONACO_HEARTBEAT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = MonacoConfig.from_env()

    assert config.page_url == "http://localhost:5000"
    assert config.ws_path == "/ws"
    assert config.delay_ms == 0
    assert config.reconnect_delay == 1.0
    assert config.highlight_window == 5.0
    assert config.elapsed_limit == 3600.0
    assert config.heartbeat is None


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONACO_PAGE_URL", "https://timing.example.com")
    monkeypatch.setenv("MONACO_DELAY_MS", "2500")
    monkeypatch.setenv("MONACO_RECONNECT_DELAY", "0.5")
    monkeypatch.setenv("MONACO_HEARTBEAT", "20")

    config = MonacoConfig.from_env()

    assert config.page_url == "https://timing.example.com"
    assert config.delay_ms == 2500
    assert config.reconnect_delay == 0.5
    assert config.heartbeat == 20.0


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONACO_DELAY_MS", "2500")
    monkeypatch.setenv("MONACO_PAGE_URL", "https://env.example.com")

    config = MonacoConfig.from_env(delay_ms=100, page_url="http://override:5000")

    assert config.delay_ms == 100
    assert config.page_url == "http://override:5000"


def test_empty_heartbeat_disables_pings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONACO_HEARTBEAT", "")

    assert MonacoConfig.from_env().heartbeat is None


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("MONACO_DELAY_MS", "soon"),
        ("MONACO_DELAY_MS", "-5"),
        ("MONACO_HIGHLIGHT_WINDOW", "long"),
        ("MONACO_ELAPSED_LIMIT", "0"),
        ("MONACO_WS_PATH", "ws"),
    ],
)
def test_invalid_values_raise_config_error(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(MonacoConfigError):
        MonacoConfig.from_env()


def test_negative_timings_are_rejected() -> None:
    with pytest.raises(MonacoConfigError):
        MonacoConfig(reconnect_delay=-1.0)
