"""Race control message model."""

from __future__ import annotations

from pyf1live.models._base import F1BaseModel, OpenF1Timestamp


class RaceControlMessage(F1BaseModel):
    """A flag, safety car or incident notice from race control.

    Messages form an append-only log: once observed they are never
    mutated or removed.
    """

    message: str = ""
    date: OpenF1Timestamp = None
    lap_number: int | None = None
    category: str | None = None
    flag: str | None = None
    scope: str | None = None
    driver_number: int | None = None
    session_key: int | None = None
    meeting_key: int | None = None
