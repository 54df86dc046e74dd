"""Weather endpoint.

Endpoints:
  - /weather
"""

from __future__ import annotations

from datetime import datetime

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.telemetry import WeatherData


async def fetch_weather(transport: Transport, session_key: int, since: datetime | None = None) -> WeatherData | None:
    """Most recent weather sample after *since*, if any."""
    params = build_params(session_key=session_key, since=since)
    samples = await fetch_records(transport, "/weather", params, WeatherData)
    return samples[-1] if samples else None
