"""Read model published to hosts once per polling tick."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.telemetry import WeatherData


class TrackStatus(StrEnum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    SC = "SC"
    VSC = "VSC"
    RED = "RED"
    CHEQUERED = "CHEQUERED"


class DriverStanding(BaseModel):
    """One row of the derived standings.

    Rows are recomputed from scratch every tick and never patched in
    place; the driver number is their only identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    driver_number: int
    name_acronym: str = ""
    full_name: str = ""
    team_name: str = ""
    team_colour: str = ""
    position: int
    grid_position: int
    pos_change: int = 0
    """Places gained since the start (negative when places were lost)."""
    gap: str = "-"
    interval: str = "-"
    aero_status: str = "Z-MODE"
    mom_status: str = "UNAVAILABLE"
    tyre_compound: str | None = None
    tyre_age: int | None = None


class DriverMapPosition(BaseModel):
    """Latest map coordinates of one car."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    driver_number: int
    x: float
    y: float
    team_colour: str = ""
    acronym: str = ""


class LiveSnapshot(BaseModel):
    """Complete, consistent view of a live session after one tick."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_key: int
    standings: tuple[DriverStanding, ...] = ()
    track_status: TrackStatus = TrackStatus.GREEN
    current_lap: int = 0
    weather: WeatherData | None = None
    driver_map_positions: tuple[DriverMapPosition, ...] = ()
    race_control: tuple[RaceControlMessage, ...] = ()
    published_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def same_content(self, other: LiveSnapshot) -> bool:
        """Compare everything except the publication time."""
        return self.model_dump(exclude={"published_at"}) == other.model_dump(exclude={"published_at"})
