"""Timing models: positions, intervals, laps and tyre stints."""

from __future__ import annotations

from pyf1live.models._base import F1BaseModel, OpenF1Timestamp, TimestampedRecord


class Position(TimestampedRecord):
    """Running order of one car at a point in time."""

    position: int


class Interval(TimestampedRecord):
    """Gap to the leader and to the car ahead (~4s updates).

    Both values are seconds, or a text marker such as ``"+1 LAP"`` for
    lapped cars.
    """

    gap_to_leader: float | str | None = None
    interval: float | str | None = None


class Lap(F1BaseModel):
    """A completed (or in-progress) lap of one driver."""

    driver_number: int
    lap_number: int
    date_start: OpenF1Timestamp = None
    lap_duration: float | None = None
    is_pit_out_lap: bool = False
    session_key: int | None = None
    meeting_key: int | None = None


class Stint(F1BaseModel):
    """A run on one set of tyres."""

    driver_number: int
    stint_number: int = 0
    compound: str | None = None
    lap_start: int | None = None
    lap_end: int | None = None
    tyre_age_at_start: int | None = None
    session_key: int | None = None
    meeting_key: int | None = None

    def tyre_age(self, current_lap: int) -> int | None:
        """Laps on this set as of *current_lap*."""
        if self.tyre_age_at_start is None or self.lap_start is None:
            return None
        laps_run = max(0, current_lap - self.lap_start) if current_lap > 0 else 0
        return self.tyre_age_at_start + laps_run
