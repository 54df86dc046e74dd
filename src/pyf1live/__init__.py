"""pyf1live - Async live timing ingestion for OpenF1-style feeds."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyf1live")
except PackageNotFoundError:
    __version__ = "0+local"
from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import (
    F1LiveConfigError,
    F1LiveConnectionError,
    F1LiveError,
    F1LiveSessionError,
    F1LiveTransportError,
)
from pyf1live.ingestion.poller import PollingOrchestrator
from pyf1live.lifecycle import (
    BoundedRetry,
    SessionLifecycleController,
    SessionState,
    select_last_completed_race,
    select_relevant_session,
)
from pyf1live.models import (
    CarData,
    Driver,
    DriverMapPosition,
    DriverStanding,
    Interval,
    Lap,
    LiveSnapshot,
    Location,
    Position,
    RaceControlMessage,
    Session,
    Stint,
    TrackStatus,
    WeatherData,
)
from pyf1live.service import LiveTimingService

__all__ = [
    "__version__",
    "BoundedRetry",
    "CarData",
    "Driver",
    "DriverMapPosition",
    "DriverStanding",
    "F1LiveClient",
    "F1LiveConfig",
    "F1LiveConfigError",
    "F1LiveConnectionError",
    "F1LiveError",
    "F1LiveSessionError",
    "F1LiveTransportError",
    "Interval",
    "Lap",
    "LiveSnapshot",
    "LiveTimingService",
    "Location",
    "PollingOrchestrator",
    "Position",
    "RaceControlMessage",
    "Session",
    "SessionLifecycleController",
    "SessionState",
    "Stint",
    "TrackStatus",
    "WeatherData",
    "select_last_completed_race",
    "select_relevant_session",
]
