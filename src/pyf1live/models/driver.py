"""Driver roster model."""

from __future__ import annotations

from pydantic import field_validator

from pyf1live.ingestion.normalize import normalize_team_name
from pyf1live.models._base import F1BaseModel


class Driver(F1BaseModel):
    """A roster entry for one session.

    ``team_name`` is normalized on parse so sponsor variants of the same
    team compare equal.
    """

    driver_number: int
    broadcast_name: str = ""
    full_name: str = ""
    name_acronym: str = ""
    team_name: str = "Unknown"
    team_colour: str = "FFFFFF"
    first_name: str = ""
    last_name: str = ""
    headshot_url: str = ""
    country_code: str = ""
    session_key: int | None = None
    meeting_key: int | None = None

    @field_validator("team_name", mode="before")
    @classmethod
    def _normalize_team(cls, value: object) -> str:
        return normalize_team_name(value if isinstance(value, str) else None)
