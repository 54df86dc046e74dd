"""Car telemetry, on-track location and weather samples."""

from __future__ import annotations

from pyf1live.models._base import F1BaseModel, OpenF1Timestamp, TimestampedRecord


class CarData(TimestampedRecord):
    """Vehicle telemetry sample (~3.7 Hz)."""

    speed: int | None = None
    rpm: int | None = None
    n_gear: int | None = None
    throttle: int | None = None
    brake: int | None = None
    drs: int | None = None


class Location(TimestampedRecord):
    """Car coordinates on the circuit map (~3.7 Hz)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class WeatherData(F1BaseModel):
    """Ambient conditions at the circuit (one sample per minute)."""

    air_temperature: float | None = None
    track_temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    rainfall: float | None = None
    wind_direction: float | None = None
    wind_speed: float | None = None
    date: OpenF1Timestamp = None
    session_key: int | None = None
    meeting_key: int | None = None
