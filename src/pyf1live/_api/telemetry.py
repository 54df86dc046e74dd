"""Car telemetry and location endpoints.

Endpoints:
  - /car_data
  - /location
"""

from __future__ import annotations

from datetime import datetime

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.telemetry import CarData, Location


async def fetch_locations(transport: Transport, session_key: int, since: datetime | None = None) -> list[Location]:
    return await fetch_records(transport, "/location", build_params(session_key=session_key, since=since), Location)


async def fetch_car_data(transport: Transport, session_key: int, since: datetime | None = None) -> list[CarData]:
    return await fetch_records(transport, "/car_data", build_params(session_key=session_key, since=since), CarData)
