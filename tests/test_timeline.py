from __future__ import annotations

from datetime import UTC, datetime, timedelta

from pymonaco.models.race_control import TimedEvent
from pymonaco.timeline import (
    ELAPSED_UNKNOWN,
    elapsed_since,
    events_from_feed,
    exclude_blue_flags,
    merge_events,
    race_control_timeline,
)

T0 = datetime(2026, 5, 24, 13, 0, tzinfo=UTC)


def _event(seconds: int, message: str, **extra: str) -> TimedEvent:
    return TimedEvent.model_validate({"Utc": (T0 + timedelta(seconds=seconds)).isoformat(), "Message": message, **extra})


def test_merge_sorts_most_recent_first() -> None:
    messages = [_event(0, "a"), _event(30, "c")]
    statuses = [_event(10, "b")]

    merged = merge_events(messages, statuses)

    assert [event.message for event in merged] == ["c", "b", "a"]


def test_merge_with_empty_second_source_only_sorts() -> None:
    events = [_event(5, "old"), _event(50, "new"), _event(20, "mid")]

    assert [event.message for event in merge_events(events, [])] == ["new", "mid", "old"]
    assert merge_events([], []) == []


def test_equal_timestamps_keep_concatenated_order() -> None:
    merged = merge_events([_event(10, "first"), _event(10, "second")], [_event(10, "third")])

    assert [event.message for event in merged] == ["first", "second", "third"]


def test_predicate_filters_blue_flags() -> None:
    blue = _event(5, "WAVED BLUE", Category="Flag", Flag="BLUE")
    yellow = _event(6, "YELLOW IN SECTOR 2", Category="Flag", Flag="YELLOW")

    merged = merge_events([blue, yellow], [], exclude_blue_flags)

    assert merged == [yellow]


def test_events_from_feed_skips_entries_without_timestamp() -> None:
    events = events_from_feed({"0": {"Utc": "2026-05-24T13:00:00", "Message": "ok"}, "1": {"Message": "no utc"}, "2": 7})

    assert [event.message for event in events] == ["ok"]
    assert events_from_feed(None) == []


def test_race_control_timeline_merges_both_sources() -> None:
    snapshot = {
        "RaceControlMessages": {"Messages": {"0": {"Utc": "2026-05-24T13:00:05", "Message": "GREEN LIGHT"}}},
        "SessionData": {
            "StatusSeries": [
                {"Utc": "2026-05-24T13:00:00", "SessionStatus": "Started"},
                {"Utc": "2026-05-24T13:00:10", "TrackStatus": "Yellow"},
            ]
        },
    }

    timeline = race_control_timeline(snapshot)

    assert [(event.message, event.session_status, event.track_status) for event in timeline] == [
        (None, None, "Yellow"),
        ("GREEN LIGHT", None, None),
        (None, "Started", None),
    ]
    assert race_control_timeline({}) == []


def test_elapsed_formats_minutes_and_seconds() -> None:
    assert elapsed_since(T0, T0 + timedelta(seconds=75)) == "01:15"
    assert elapsed_since(T0, T0) == "00:00"
    assert elapsed_since(T0, T0 + timedelta(seconds=3600)) == "60:00"


def test_elapsed_beyond_limit_is_unknown() -> None:
    assert elapsed_since(T0, T0 + timedelta(seconds=3601)) == ELAPSED_UNKNOWN
    assert elapsed_since(T0, T0 + timedelta(seconds=31), limit=30) == ELAPSED_UNKNOWN


def test_elapsed_clamps_future_events_to_zero() -> None:
    assert elapsed_since(T0 + timedelta(seconds=5), T0) == "00:00"


def test_elapsed_accepts_naive_timestamps_as_utc() -> None:
    assert elapsed_since(T0.replace(tzinfo=None), T0 + timedelta(seconds=9)) == "00:09"
