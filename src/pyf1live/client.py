"""High-level async client for the live timing feeds."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import aiohttp

from pyf1live._api import drivers as _drivers_api
from pyf1live._api import race_control as _race_control_api
from pyf1live._api import sessions as _sessions_api
from pyf1live._api import telemetry as _telemetry_api
from pyf1live._api import timing as _timing_api
from pyf1live._api import weather as _weather_api
from pyf1live._transport import HttpTransport, Transport
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import F1LiveError
from pyf1live.models.driver import Driver
from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.session import Session
from pyf1live.models.telemetry import CarData, Location, WeatherData
from pyf1live.models.timing import Interval, Lap, Position, Stint


class F1LiveClient:
    """Async client for the session, timing and telemetry feeds.

    Usage::

        async with F1LiveClient(config) as client:
            sessions = await client.get_sessions(2025)

    Every read accepts the session key explicitly; the client holds no
    per-session state.
    """

    def __init__(
        self,
        config: F1LiveConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or F1LiveConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None

    @property
    def config(self) -> F1LiveConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> F1LiveClient:
        if self._external_transport:
            return self
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise F1LiveError("Client not initialized. Use 'async with F1LiveClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Sessions and roster
    # ------------------------------------------------------------------

    async def get_sessions(self, year: int) -> list[Session]:
        """Fetch every session of *year*."""
        return await _sessions_api.fetch_sessions(self._require_transport(), year)

    async def get_drivers(self, session_key: int, meeting_key: int | None = None) -> list[Driver]:
        """Fetch the session roster (meeting roster when incomplete)."""
        return await _drivers_api.fetch_drivers(
            self._require_transport(),
            session_key,
            meeting_key,
            min_roster_size=self._config.min_roster_size,
        )

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    async def get_positions(self, session_key: int, since: datetime | None = None) -> list[Position]:
        return await _timing_api.fetch_positions(self._require_transport(), session_key, since)

    async def get_grid_positions(self, session_key: int) -> dict[int, int]:
        """Starting position per driver number."""
        return await _timing_api.fetch_grid_positions(self._require_transport(), session_key)

    async def get_intervals(self, session_key: int, since: datetime | None = None) -> list[Interval]:
        return await _timing_api.fetch_intervals(self._require_transport(), session_key, since)

    async def get_laps(self, session_key: int, driver_number: int) -> list[Lap]:
        return await _timing_api.fetch_laps(self._require_transport(), session_key, driver_number)

    async def get_current_lap(self, session_key: int, driver_number: int | None) -> int:
        """Lap *driver_number* is currently on, ``0`` when unknown."""
        return await _timing_api.fetch_current_lap(self._require_transport(), session_key, driver_number)

    async def get_stints(self, session_key: int) -> dict[int, Stint]:
        """Latest tyre stint per driver number."""
        return await _timing_api.fetch_stints(self._require_transport(), session_key)

    # ------------------------------------------------------------------
    # Telemetry, race control, weather
    # ------------------------------------------------------------------

    async def get_locations(self, session_key: int, since: datetime | None = None) -> list[Location]:
        return await _telemetry_api.fetch_locations(self._require_transport(), session_key, since)

    async def get_car_data(self, session_key: int, since: datetime | None = None) -> list[CarData]:
        return await _telemetry_api.fetch_car_data(self._require_transport(), session_key, since)

    async def get_race_control(self, session_key: int) -> list[RaceControlMessage]:
        return await _race_control_api.fetch_race_control(self._require_transport(), session_key)

    async def get_latest_message_timestamp(self, session_key: int) -> datetime | None:
        return await _race_control_api.fetch_latest_message_timestamp(self._require_transport(), session_key)

    async def get_weather(self, session_key: int, since: datetime | None = None) -> WeatherData | None:
        return await _weather_api.fetch_weather(self._require_transport(), session_key, since)
