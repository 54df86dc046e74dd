"""Race control endpoint.

Endpoints:
  - /race_control
"""

from __future__ import annotations

from datetime import datetime

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.race_control import RaceControlMessage


async def fetch_race_control(transport: Transport, session_key: int) -> list[RaceControlMessage]:
    """The full message log; it is small and append-only, so never filtered."""
    params = build_params(session_key=session_key)
    return await fetch_records(transport, "/race_control", params, RaceControlMessage)


async def fetch_latest_message_timestamp(transport: Transport, session_key: int) -> datetime | None:
    """Timestamp of the newest race-control message, used to sync to track time."""
    messages = await fetch_race_control(transport, session_key)
    if not messages:
        return None
    return messages[-1].date
