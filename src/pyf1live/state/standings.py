"""Standings derivation.

Turns the roster plus the latest per-driver position, interval, telemetry
and stint records into one ranked list.  The functions here are pure: for
equal inputs they return equal output, field for field and in the same
order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from pyf1live._constants import (
    AERO_CLOSED,
    AERO_OPEN,
    DRS_OPEN_THRESHOLD,
    GAP_LEADER,
    MOM_READY,
    MOM_READY_MAX_INTERVAL,
    MOM_UNAVAILABLE,
    NO_TIMING,
    UNRANKED_POSITION,
)
from pyf1live.ingestion.normalize import safe_float
from pyf1live.models.driver import Driver
from pyf1live.models.snapshot import DriverStanding
from pyf1live.models.telemetry import CarData
from pyf1live.models.timing import Interval, Position, Stint


def format_timing(value: float | str | None) -> str | None:
    """``"+1.234"`` for a non-zero number, lapped-car text as-is, else ``None``."""
    if value is None:
        return None
    number = safe_float(value)
    if number is None:
        text = str(value).strip()
        return text or None
    if number == 0:
        return None
    return f"+{number:.3f}"


def aero_status(sample: CarData | None, *, drs_open_threshold: int = DRS_OPEN_THRESHOLD) -> str:
    if sample is not None and sample.drs is not None and sample.drs > drs_open_threshold:
        return AERO_OPEN
    return AERO_CLOSED


def mom_status(record: Interval | None, *, max_interval: float = MOM_READY_MAX_INTERVAL) -> str:
    interval = safe_float(record.interval) if record is not None else None
    if interval is not None and 0 < interval < max_interval:
        return MOM_READY
    return MOM_UNAVAILABLE


def initial_standings(roster: Sequence[Driver], grid_positions: Mapping[int, int]) -> list[DriverStanding]:
    """Standings shown before any timing data has arrived (roster order)."""
    rows: list[DriverStanding] = []
    for index, driver in enumerate(roster):
        rows.append(
            DriverStanding(
                driver_number=driver.driver_number,
                name_acronym=driver.name_acronym,
                full_name=driver.full_name,
                team_name=driver.team_name,
                team_colour=driver.team_colour,
                position=index + 1,
                grid_position=grid_positions.get(driver.driver_number, index + 1),
                pos_change=0,
                gap=NO_TIMING,
                interval=NO_TIMING,
                aero_status=AERO_CLOSED,
                mom_status=MOM_UNAVAILABLE,
            )
        )
    return rows


def derive_standings(
    roster: Sequence[Driver],
    positions: Mapping[int, Position],
    intervals: Mapping[int, Interval],
    telemetry: Mapping[int, CarData],
    grid_positions: Mapping[int, int],
    previous: Sequence[DriverStanding],
    stints: Mapping[int, Stint] | None = None,
    *,
    current_lap: int = 0,
    drs_open_threshold: int = DRS_OPEN_THRESHOLD,
    mom_ready_max_interval: float = MOM_READY_MAX_INTERVAL,
    unranked_position: int = UNRANKED_POSITION,
) -> list[DriverStanding]:
    """Derive ranked standings for every driver in *roster*.

    Parameters
    ----------
    roster
        Session drivers; their order breaks position ties.
    positions, intervals, telemetry
        Latest record per driver number.
    grid_positions
        Starting position per driver number (race sessions only).
    previous
        Standings of the previous tick, used when a driver has no
        position record yet.
    stints
        Latest tyre stint per driver number.
    """
    previous_positions = {row.driver_number: row.position for row in previous}
    stints = stints or {}

    rows: list[DriverStanding] = []
    for driver in roster:
        number = driver.driver_number

        position_record = positions.get(number)
        if position_record is not None:
            position = position_record.position
        else:
            position = previous_positions.get(number, unranked_position)

        # Last resort mirrors the pre-data standings of an unseeded grid.
        grid_position = grid_positions.get(number, number)

        interval_record = intervals.get(number)
        gap = format_timing(interval_record.gap_to_leader) if interval_record is not None else None
        if gap is None:
            gap = GAP_LEADER if position == 1 else NO_TIMING
        interval = format_timing(interval_record.interval) if interval_record is not None else None

        stint = stints.get(number)

        rows.append(
            DriverStanding(
                driver_number=number,
                name_acronym=driver.name_acronym,
                full_name=driver.full_name,
                team_name=driver.team_name,
                team_colour=driver.team_colour,
                position=position,
                grid_position=grid_position,
                pos_change=grid_position - position,
                gap=gap,
                interval=interval or NO_TIMING,
                aero_status=aero_status(telemetry.get(number), drs_open_threshold=drs_open_threshold),
                mom_status=mom_status(interval_record, max_interval=mom_ready_max_interval),
                tyre_compound=stint.compound if stint is not None else None,
                tyre_age=stint.tyre_age(current_lap) if stint is not None else None,
            )
        )

    # sorted() is stable, so equal positions keep roster order.
    return sorted(rows, key=lambda row: row.position)
