#!/usr/bin/env python3
"""Passive probe for a live timing feed.

Connects with pymonaco, applies an optional playback delay and prints a
one-line summary of the snapshot every few seconds: phase, session clock,
leader and the latest race-control message.

Use this to check that a feed endpoint is reachable and merging sanely.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pymonaco import MonacoClient, MonacoConfig  # noqa: E402
from pymonaco.state.events import SnapshotUpdate  # noqa: E402

_LOG = logging.getLogger("live_probe")


@dataclass
class ProbeStats:
    started_at: float
    snapshots: int = 0
    race_control_cues: int = 0
    last_update_at: float | None = None


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Passive probe for a live timing WebSocket feed.",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Page URL serving the feed (defaults to MONACO_PAGE_URL or http://localhost:5000).",
    )
    parser.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        help="Playback delay in milliseconds.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--report-seconds",
        type=float,
        default=5.0,
        help="Print a summary every N seconds.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_report(client: MonacoClient, stats: ProbeStats) -> None:
    phase = client.phase
    if client.syncing:
        print(f"[probe] {phase} {client.sync_remaining:.1f}s left")
        return
    leader = next(iter(client.standings()), None)
    timeline = client.timeline()
    latest = timeline[0] if timeline else None
    parts = [
        f"phase={phase}",
        f"clock={client.clock_remaining() or '-'}",
        f"leader={leader.racing_number if leader else '-'}",
        f"snapshots={stats.snapshots}",
        f"malformed={client.malformed_count}",
    ]
    if latest is not None:
        parts.append(f"last_rc=[{client.elapsed(latest)}] {latest.message or latest.track_status or latest.session_status}")
    print("[probe] " + " ".join(parts))


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s         : {runtime:.1f}")
    print(f"[probe]   snapshots         : {stats.snapshots}")
    print(f"[probe]   race_control_cues : {stats.race_control_cues}")
    if stats.last_update_at is not None:
        last_update = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(stats.last_update_at))
        print(f"[probe]   last_update       : {last_update}")


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.url:
        overrides["page_url"] = args.url
    if args.delay_ms is not None:
        overrides["delay_ms"] = args.delay_ms
    config = MonacoConfig.from_env(**overrides)

    stats = ProbeStats(started_at=time.time())

    def on_snapshot(_update: SnapshotUpdate) -> None:
        stats.snapshots += 1
        stats.last_update_at = time.time()

    def on_race_control(count: int) -> None:
        stats.race_control_cues += 1
        _LOG.info("New race control message (total %d)", count)

    async with MonacoClient(config, on_snapshot=on_snapshot, on_race_control=on_race_control) as client:
        if not await client.wait_connected(timeout=10.0):
            print(f"[probe] Could not connect to {config.page_url}", file=sys.stderr)
            return 2
        deadline = time.monotonic() + args.duration if args.duration > 0 else None
        try:
            while deadline is None or time.monotonic() < deadline:
                await asyncio.sleep(args.report_seconds)
                _print_report(client, stats)
        except asyncio.CancelledError:
            pass
    _print_summary(stats)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(_main())
