"""Session listing endpoint.

Endpoints:
  - /sessions
"""

from __future__ import annotations

from pyf1live._api._common import build_params, fetch_records
from pyf1live._transport import Transport
from pyf1live.models.session import Session


async def fetch_sessions(transport: Transport, year: int) -> list[Session]:
    """All sessions of *year*, in the order the feed lists them."""
    return await fetch_records(transport, "/sessions", build_params(year=year), Session)
