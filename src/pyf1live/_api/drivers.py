"""Driver roster endpoint.

Endpoints:
  - /drivers
"""

from __future__ import annotations

import logging

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.driver import Driver

_logger = logging.getLogger(__name__)


async def fetch_drivers(
    transport: Transport,
    session_key: int,
    meeting_key: int | None = None,
    *,
    min_roster_size: int = 10,
) -> list[Driver]:
    """Fetch the roster of a session.

    Early in a session the feed may list only part of the field.  When
    fewer than *min_roster_size* drivers come back, the whole meeting's
    roster is used instead (one entry per driver number, later entries
    win).
    """
    drivers = await fetch_records(transport, "/drivers", build_params(session_key=session_key), Driver)
    if len(drivers) >= min_roster_size or meeting_key is None:
        return drivers

    _logger.debug(
        "Session %s lists %d drivers; falling back to meeting %s roster",
        session_key,
        len(drivers),
        meeting_key,
    )
    meeting_drivers = await fetch_records(transport, "/drivers", build_params(meeting_key=meeting_key), Driver)
    unique: dict[int, Driver] = {}
    for driver in meeting_drivers:
        unique[driver.driver_number] = driver
    return list(unique.values()) if unique else drivers
