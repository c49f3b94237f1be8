from __future__ import annotations

from pymonaco.timeline import exclude_blue_flags
from pymonaco.views import (
    SessionPhase,
    current_stint,
    latest_car_telemetry,
    race_control_count,
    session_phase,
    standings,
    timing_lines,
)

FEEDS = {
    "Heartbeat": {"Utc": "2026-05-24T13:00:00Z"},
    "TimingData": {
        "Lines": {
            "1": {"Position": "2"},
            "44": {"Position": "1"},
            "81": {"Position": ""},
            "16": {"Position": "3"},
        }
    },
    "TimingAppData": {
        "Lines": {
            "44": {"Stints": [{"Compound": "MEDIUM", "TotalLaps": 20}, {"Compound": "HARD", "New": "true"}]},
            "1": {"Stints": {"0": {"Compound": "SOFT"}}},
        }
    },
    "CarData": {
        "Entries": [
            {"Utc": "2026-05-24T13:00:00Z", "Cars": {"44": {"Channels": {"2": 100}}}},
            {"Utc": "2026-05-24T13:00:01Z", "Cars": {"44": {"Channels": {"2": 120, "3": 4}}}},
        ]
    },
    "RaceControlMessages": {
        "Messages": [
            {"Utc": "2026-05-24T13:00:00", "Message": "GREEN LIGHT"},
            {"Utc": "2026-05-24T13:01:00", "Category": "Flag", "Flag": "BLUE", "Message": "WAVED BLUE"},
            {"Message": "missing timestamp"},
        ]
    },
}


def test_session_phase_precedence() -> None:
    assert session_phase(connected=False, syncing=True, feeds=FEEDS) == SessionPhase.NO_CONNECTION
    assert session_phase(connected=True, syncing=True, feeds=FEEDS) == SessionPhase.SYNCING
    assert session_phase(connected=True, syncing=False, feeds={}) == SessionPhase.NO_SESSION
    assert session_phase(connected=True, syncing=False, feeds=FEEDS) == SessionPhase.LIVE


def test_timing_lines_are_keyed_by_racing_number() -> None:
    lines = timing_lines(FEEDS)

    assert set(lines) == {"1", "44", "81", "16"}
    assert lines["44"].racing_number == "44"
    assert timing_lines({}) == {}


def test_standings_order_by_position_with_unknown_last() -> None:
    ordered = [line.racing_number for line in standings(FEEDS)]

    assert ordered == ["44", "1", "16", "81"]


def test_current_stint_is_the_last_one() -> None:
    stint = current_stint(FEEDS, "44")

    assert stint is not None
    assert stint.compound == "HARD"
    assert stint.new is True
    assert current_stint(FEEDS, "1").compound == "SOFT"  # type: ignore[union-attr]
    assert current_stint(FEEDS, "99") is None


def test_latest_car_telemetry_uses_newest_entry() -> None:
    car = latest_car_telemetry(FEEDS, "44")

    assert car is not None
    assert car.speed == 120
    assert car.gear == 4
    assert latest_car_telemetry(FEEDS, "1") is None
    assert latest_car_telemetry({}, "44") is None


def test_race_control_count_skips_untimed_entries_and_filters() -> None:
    assert race_control_count(FEEDS) == 2
    assert race_control_count(FEEDS, exclude_blue_flags) == 1
    assert race_control_count({}) == 0


def test_standings_skip_lines_that_fail_validation() -> None:
    feeds = {
        "TimingData": {
            "Lines": {
                "1": {"Position": "2", "GapToLeader": 0.5},
                "44": {"Position": "1", "IntervalToPositionAhead": "+0.3"},
                "16": {"Position": "3"},
            }
        }
    }

    ordered = standings(feeds)

    assert [line.racing_number for line in ordered] == ["1", "16"]
    assert ordered[0].gap_to_leader == "0.5"


def test_current_stint_with_invalid_entry_is_none() -> None:
    feeds = {"TimingAppData": {"Lines": {"4": {"Stints": [{"Compound": ["SOFT"]}]}}}}

    assert current_stint(feeds, "4") is None
