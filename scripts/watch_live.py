#!/usr/bin/env python3
"""Watch live timing from the terminal.

Acquires the relevant session, then prints the standings every time a
new snapshot is published and every race-control notification as it
arrives.

Usage
-----
::

    python scripts/watch_live.py
    python scripts/watch_live.py --duration 600 --json
    python scripts/watch_live.py --sessions 2024   # list sessions and exit

Configuration comes from ``F1LIVE_*`` environment variables (see
:class:`pyf1live.F1LiveConfig`).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyf1live import (  # noqa: E402
    F1LiveClient,
    F1LiveConfig,
    LiveSnapshot,
    LiveTimingService,
    RaceControlMessage,
)

# ── output ───────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_snapshot(snapshot: LiveSnapshot) -> str:
    lines = [
        _section(
            f"Session {snapshot.session_key}  lap {snapshot.current_lap}  "
            f"track {snapshot.track_status}  @ {snapshot.published_at:%H:%M:%S}"
        )
    ]
    for row in snapshot.standings:
        tyre = f"{row.tyre_compound or '?'}/{row.tyre_age if row.tyre_age is not None else '?'}"
        lines.append(
            f"  P{row.position:<3} {row.name_acronym or row.driver_number:<4} "
            f"{row.team_name:<16} {row.gap:>10} {row.interval:>10} "
            f"{row.pos_change:+3d}  {row.aero_status}  {row.mom_status:<11} {tyre}"
        )
    if snapshot.weather is not None:
        w = snapshot.weather
        lines.append(f"  Weather: air {w.air_temperature}°C  track {w.track_temperature}°C  rain {w.rainfall}")
    return "\n".join(lines)


def _format_notification(message: RaceControlMessage) -> str:
    stamp = message.date.strftime("%H:%M:%S") if message.date else "--:--:--"
    lap = f"L{message.lap_number}" if message.lap_number else ""
    return f"[RACE CONTROL {stamp} {lap}] {message.message}"


# ── main ─────────────────────────────────────────────────────


async def _list_sessions(config: F1LiveConfig, year: int, json_mode: bool) -> None:
    async with F1LiveClient(config) as client:
        sessions = await client.get_sessions(year)
    if json_mode:
        print(json.dumps([s.model_dump(mode="json") for s in sessions], indent=2))
        return
    print(_section(f"Sessions {year}"))
    for s in sessions:
        start = s.date_start.isoformat() if s.date_start else "?"
        print(f"  {s.session_key:>6}  {start:<26} {s.location:<16} {s.session_name}")


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Print live standings and race-control notifications",
    )
    parser.add_argument("--duration", type=float, default=0.0, help="Stop after N seconds (default: run forever)")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--sessions", type=int, metavar="YEAR", help="List sessions of YEAR and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = F1LiveConfig.from_env()

    if args.sessions:
        await _list_sessions(config, args.sessions, args.json_mode)
        return

    def _on_snapshot(snapshot: LiveSnapshot) -> None:
        if args.json_mode:
            print(snapshot.model_dump_json())
        else:
            print(_format_snapshot(snapshot))

    def _on_notification(message: RaceControlMessage) -> None:
        if not args.json_mode:
            print(_format_notification(message))

    async with LiveTimingService(config) as service:
        service.subscribe(_on_snapshot)
        service.on_notification(_on_notification)

        if service.connection_error is not None:
            print(f"Connection error: {service.connection_error}", file=sys.stderr)
            return

        session = service.session
        if session is not None:
            print(
                f"{session.session_name} at {session.location} ({session.session_key}): {service.state}",
                file=sys.stderr,
            )
        last = service.last_completed
        if last is not None:
            print(f"Last completed race: {last.location} {last.year}", file=sys.stderr)

        if args.duration > 0:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
