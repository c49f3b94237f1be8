from __future__ import annotations

import asyncio

import pytest

from pymonaco.highlight import STABLE, HighlightDirection, HighlightState, HighlightTracker


@pytest.mark.asyncio
async def test_first_sighting_and_unchanged_positions_stay_stable() -> None:
    tracker = HighlightTracker(window=0.05)

    for _ in range(5):
        assert tracker.observe("44", 3) == STABLE

    assert tracker.state("44") == STABLE
    assert tracker.pending_expiries() == 0


@pytest.mark.asyncio
async def test_direction_follows_ordinal_change() -> None:
    tracker = HighlightTracker(window=1.0)
    tracker.observe("1", 2)
    tracker.observe("44", 1)

    assert tracker.observe("1", 1).direction == HighlightDirection.IMPROVED
    assert tracker.observe("44", 2).direction == HighlightDirection.WORSENED
    assert tracker.pending_expiries() == 2
    tracker.close()


@pytest.mark.asyncio
async def test_new_change_replaces_pending_expiry() -> None:
    tracker = HighlightTracker(window=0.3)
    tracker.observe("16", 5)

    first = tracker.observe("16", 4)
    await asyncio.sleep(0.15)
    second = tracker.observe("16", 6)

    assert first.direction == HighlightDirection.IMPROVED
    assert second.direction == HighlightDirection.WORSENED
    assert second.expires_at is not None and first.expires_at is not None
    assert second.expires_at > first.expires_at
    assert tracker.pending_expiries() == 1

    # Past the first window but inside the second one.
    await asyncio.sleep(0.2)
    assert tracker.state("16").direction == HighlightDirection.WORSENED

    await asyncio.sleep(0.2)
    assert tracker.state("16") == STABLE
    assert tracker.pending_expiries() == 0


@pytest.mark.asyncio
async def test_expiry_reverts_to_stable_and_notifies() -> None:
    seen: list[tuple[str, HighlightState]] = []
    tracker = HighlightTracker(window=0.05, on_change=lambda entity, state: seen.append((entity, state)))
    tracker.observe("4", 2)
    tracker.observe("4", 1)

    await asyncio.sleep(0.1)

    assert tracker.state("4") == STABLE
    assert [state.direction for _, state in seen] == [HighlightDirection.IMPROVED, None]


@pytest.mark.asyncio
async def test_observe_lines_ignores_missing_positions() -> None:
    tracker = HighlightTracker(window=1.0)
    tracker.observe_lines({"1": {"Position": "1"}, "44": {"Position": "2"}, "81": {"InPit": True}, "x": "bad"})
    tracker.observe_lines({"1": {"Position": "2"}, "44": {"Position": "1"}, "81": {"Position": ""}})

    states = tracker.states()
    assert set(states) == {"1", "44"}
    assert states["1"].direction == HighlightDirection.WORSENED
    assert states["44"].direction == HighlightDirection.IMPROVED
    tracker.close()


@pytest.mark.asyncio
async def test_close_cancels_all_pending_expiries() -> None:
    tracker = HighlightTracker(window=0.05)
    for entity in ("1", "11", "63"):
        tracker.observe(entity, 5)
        tracker.observe(entity, 9)
    assert tracker.pending_expiries() == 3

    tracker.close()

    assert tracker.pending_expiries() == 0
    assert tracker.states() == {}
    await asyncio.sleep(0.1)


@pytest.mark.asyncio
async def test_forget_cancels_one_entity() -> None:
    tracker = HighlightTracker(window=1.0)
    tracker.observe("1", 1)
    tracker.observe("1", 2)
    tracker.observe("2", 2)
    tracker.observe("2", 1)

    tracker.forget("1")

    assert tracker.pending_expiries() == 1
    assert tracker.state("1") == STABLE
    tracker.close()
