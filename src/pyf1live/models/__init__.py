"""Data models for feed records and the published read model."""

from pyf1live.models._base import F1BaseModel, OpenF1Timestamp, TimestampedRecord
from pyf1live.models.driver import Driver
from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.session import Session
from pyf1live.models.snapshot import DriverMapPosition, DriverStanding, LiveSnapshot, TrackStatus
from pyf1live.models.telemetry import CarData, Location, WeatherData
from pyf1live.models.timing import Interval, Lap, Position, Stint

__all__ = [
    "CarData",
    "Driver",
    "DriverMapPosition",
    "DriverStanding",
    "F1BaseModel",
    "Interval",
    "Lap",
    "LiveSnapshot",
    "Location",
    "OpenF1Timestamp",
    "Position",
    "RaceControlMessage",
    "Session",
    "Stint",
    "TimestampedRecord",
    "TrackStatus",
    "WeatherData",
]
