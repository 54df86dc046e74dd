"""Timing endpoints: positions, intervals, laps and stints.

Endpoints:
  - /position
  - /intervals
  - /laps
  - /stints
"""

from __future__ import annotations

from datetime import datetime

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.timing import Interval, Lap, Position, Stint


async def fetch_positions(transport: Transport, session_key: int, since: datetime | None = None) -> list[Position]:
    return await fetch_records(transport, "/position", build_params(session_key=session_key, since=since), Position)


async def fetch_grid_positions(transport: Transport, session_key: int) -> dict[int, int]:
    """Starting position per driver: the earliest position record of each."""
    positions = await fetch_records(transport, "/position", build_params(session_key=session_key), Position)
    earliest: dict[int, Position] = {}
    for record in positions:
        current = earliest.get(record.driver_number)
        if current is None:
            earliest[record.driver_number] = record
            continue
        if record.date is not None and (current.date is None or record.date < current.date):
            earliest[record.driver_number] = record
    return {number: record.position for number, record in earliest.items()}


async def fetch_intervals(transport: Transport, session_key: int, since: datetime | None = None) -> list[Interval]:
    return await fetch_records(transport, "/intervals", build_params(session_key=session_key, since=since), Interval)


async def fetch_laps(transport: Transport, session_key: int, driver_number: int) -> list[Lap]:
    params = build_params(session_key=session_key, driver_number=driver_number)
    return await fetch_records(transport, "/laps", params, Lap)


async def fetch_current_lap(transport: Transport, session_key: int, driver_number: int | None) -> int:
    """Lap the given driver is on (last started lap + 1), ``0`` if unknown."""
    if not driver_number:
        return 0
    laps = await fetch_laps(transport, session_key, driver_number)
    if not laps:
        return 0
    return max(lap.lap_number for lap in laps) + 1


async def fetch_stints(transport: Transport, session_key: int) -> dict[int, Stint]:
    """Latest stint per driver."""
    stints = await fetch_records(transport, "/stints", build_params(session_key=session_key), Stint)
    latest: dict[int, Stint] = {}
    for stint in stints:
        current = latest.get(stint.driver_number)
        if current is None or stint.stint_number >= current.stint_number:
            latest[stint.driver_number] = stint
    return latest
