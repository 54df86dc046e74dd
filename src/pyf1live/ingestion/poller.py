"""Incremental multi-stream polling for one live session.

The orchestrator owns every piece of mutable polling state for a single
session: stream watermarks, the merged newest-per-driver maps, the
race-control log, the roster and the previous standings.  Nothing is kept
at module level, so switching sessions is just closing one orchestrator
and creating another.

A tick runs in a fixed order:

1. locations since the location watermark (driver map positions);
2. the full race-control log (track status and notifications);
3. positions, intervals, car telemetry, weather, the leader's lap and tyre
   stints, fetched concurrently;
4. merge into the running maps;
5. derive standings and publish one :class:`LiveSnapshot`.

Every fetch goes through :meth:`PollingOrchestrator._fetch`, which turns a
failure into "no data this tick" so the stream keeps its previous state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any, TypeVar

from pyf1live._constants import (
    STREAM_INTERVAL,
    STREAM_LOCATION,
    STREAM_POSITION,
    STREAM_WEATHER,
    SYNCED_STREAMS,
)
from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.models.driver import Driver
from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.session import Session
from pyf1live.models.snapshot import DriverMapPosition, DriverStanding, LiveSnapshot, TrackStatus
from pyf1live.models.telemetry import CarData, Location, WeatherData
from pyf1live.models.timing import Interval, Position, Stint
from pyf1live.state.standings import derive_standings, initial_standings
from pyf1live.state.store import StreamMerger, latest_per_key, newest_date
from pyf1live.state.track_status import NotificationTracker, classify_track_status
from pyf1live.state.watermark import WatermarkCursor

_logger = logging.getLogger(__name__)

T = TypeVar("T")

SnapshotCallback = Callable[[LiveSnapshot], None]
NotificationCallback = Callable[[RaceControlMessage], None]


async def _no_data() -> None:
    return None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PollingOrchestrator:
    """Polls one live session and publishes a snapshot per tick.

    Parameters
    ----------
    client
        Entered :class:`F1LiveClient`.
    session
        The live session to poll.  Its key is the identity every fetched
        batch is checked against.
    on_snapshot
        Called with each published snapshot.
    on_notification
        Called once for every race-control message appended to the log.
    """

    def __init__(
        self,
        client: F1LiveClient,
        session: Session,
        config: F1LiveConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        on_snapshot: SnapshotCallback | None = None,
        on_notification: NotificationCallback | None = None,
    ) -> None:
        self._client = client
        self._session = session
        self._config = config or client.config
        self._clock = clock
        self._on_snapshot = on_snapshot
        self._on_notification = on_notification

        self._closed = False
        self._running = False
        self._initialized = False
        self._tick_attempts = 0
        self._tick_failures = 0

        self._watermarks = WatermarkCursor()
        self._positions: StreamMerger[Position] = StreamMerger()
        self._intervals: StreamMerger[Interval] = StreamMerger()
        self._telemetry: dict[int, CarData] = {}
        self._stints: dict[int, Stint] = {}
        self._map_positions: dict[int, DriverMapPosition] = {}
        self._race_control: list[RaceControlMessage] = []
        self._notifications = NotificationTracker()
        self._latest_notification: RaceControlMessage | None = None
        self._track_status = TrackStatus.GREEN
        self._weather: WeatherData | None = None
        self._current_lap = 0

        self._roster: list[Driver] = []
        self._grid: dict[int, int] = {}
        self._standings: list[DriverStanding] = []
        self._snapshot: LiveSnapshot | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session:
        return self._session

    @property
    def session_key(self) -> int:
        return self._session.session_key

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def snapshot(self) -> LiveSnapshot | None:
        return self._snapshot

    @property
    def roster(self) -> list[Driver]:
        return list(self._roster)

    @property
    def grid_positions(self) -> dict[int, int]:
        return dict(self._grid)

    @property
    def watermarks(self) -> WatermarkCursor:
        return self._watermarks

    @property
    def track_status(self) -> TrackStatus:
        return self._track_status

    @property
    def latest_notification(self) -> RaceControlMessage | None:
        return self._latest_notification

    def close(self) -> None:
        """Stop accepting results; in-flight fetches are discarded."""
        if not self._closed:
            _logger.debug("Closing orchestrator for session %s", self.session_key)
        self._closed = True

    # ------------------------------------------------------------------
    # Fetch boundary
    # ------------------------------------------------------------------

    async def _fetch(self, stream: str, call: Awaitable[T]) -> T | None:
        self._tick_attempts += 1
        try:
            return await call
        except Exception:
            self._tick_failures += 1
            _logger.debug(
                "Fetch of %s failed for session %s; keeping previous data",
                stream,
                self.session_key,
                exc_info=True,
            )
            return None

    def _own(self, stream: str, batch: Iterable[T] | None) -> list[T] | None:
        """Drop records that belong to another session."""
        if batch is None:
            return None
        kept: list[T] = []
        foreign = 0
        for record in batch:
            key = getattr(record, "session_key", None)
            if key is not None and key != self.session_key:
                foreign += 1
                continue
            kept.append(record)
        if foreign:
            _logger.debug("Discarded %d %s records from another session", foreign, stream)
        return kept

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self) -> LiveSnapshot | None:
        """Load roster and grid, time-sync the watermarks, publish.

        Returns the initial snapshot, or ``None`` when the orchestrator was
        closed while loading.
        """
        key = self.session_key

        roster = await self._fetch("drivers", self._client.get_drivers(key, self._session.meeting_key))
        if self._closed:
            return None
        # Meeting-roster fallback entries carry other session keys.
        self._roster = roster or []

        if self._session.is_race:
            grid = await self._fetch("grid", self._client.get_grid_positions(key))
            if self._closed:
                return None
            self._grid = dict(grid or {})

        start = await self._time_sync()
        if self._closed:
            return None

        self._standings = initial_standings(self._roster, self._grid)
        self._initialized = True
        _logger.info(
            "Initialized session %s: %d drivers, %d grid slots, streams from %s",
            key,
            len(self._roster),
            len(self._grid),
            start.isoformat(),
        )
        return self._publish()

    async def _time_sync(self) -> datetime:
        latest = await self._fetch(
            "race_control",
            self._client.get_latest_message_timestamp(self.session_key),
        )
        if latest is not None:
            start = latest - timedelta(seconds=self._config.time_sync_offset)
        else:
            start = self._clock() - timedelta(seconds=self._config.time_sync_fallback)
        if not self._closed:
            self._watermarks.seed(SYNCED_STREAMS, start)
        return start

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> LiveSnapshot | None:
        """Run one polling cycle.

        Returns the published snapshot, or ``None`` when the tick was
        skipped, discarded, or produced no data at all.
        """
        if self._closed:
            return None
        if not self._initialized:
            _logger.debug("Session %s not initialized yet; skipping tick", self.session_key)
            return None
        if self._running:
            _logger.debug("Tick for session %s still running; skipping", self.session_key)
            return None

        self._running = True
        self._tick_attempts = 0
        self._tick_failures = 0
        try:
            return await self._run_tick()
        except Exception:
            _logger.warning("Polling tick failed for session %s", self.session_key, exc_info=True)
            return None
        finally:
            self._running = False

    async def _run_tick(self) -> LiveSnapshot | None:
        key = self.session_key
        client = self._client
        marks = self._watermarks

        # 1. Locations
        locations = await self._fetch(STREAM_LOCATION, client.get_locations(key, marks.get(STREAM_LOCATION)))
        if self._closed:
            return None
        self._apply_locations(self._own(STREAM_LOCATION, locations))

        # 2. Race control
        messages = await self._fetch("race_control", client.get_race_control(key))
        if self._closed:
            return None
        self._apply_race_control(self._own("race_control", messages))

        # 3. Concurrent reads
        telemetry_since = self._clock() - timedelta(seconds=self._config.telemetry_window)
        leader = self._standings[0].driver_number if self._standings else None
        results: list[Any] = await asyncio.gather(
            self._fetch(STREAM_POSITION, client.get_positions(key, marks.get(STREAM_POSITION))),
            self._fetch(STREAM_INTERVAL, client.get_intervals(key, marks.get(STREAM_INTERVAL))),
            self._fetch("car_data", client.get_car_data(key, telemetry_since)),
            self._fetch(STREAM_WEATHER, client.get_weather(key, marks.get(STREAM_WEATHER))),
            self._fetch("laps", client.get_current_lap(key, leader)) if leader is not None else _no_data(),
            self._fetch("stints", client.get_stints(key)),
        )
        if self._closed:
            _logger.debug("Session %s closed during tick; discarding results", key)
            return None
        positions, intervals, car_data, weather, current_lap, stints = results

        if self._tick_failures == self._tick_attempts:
            _logger.warning("Every fetch failed for session %s; keeping previous snapshot", key)
            return None

        # 4. Merge
        self._apply_positions(self._own(STREAM_POSITION, positions))
        self._apply_intervals(self._own(STREAM_INTERVAL, intervals))
        self._apply_telemetry(self._own("car_data", car_data))
        self._expire_telemetry(telemetry_since)
        self._apply_weather(weather)
        if current_lap:
            self._current_lap = int(current_lap)
        if stints:
            self._stints.update(
                (number, stint) for number, stint in stints.items() if stint.session_key in (None, key)
            )

        # 5. Derive and publish
        self._standings = derive_standings(
            self._roster,
            self._positions.latest(),
            self._intervals.latest(),
            self._telemetry,
            self._grid,
            self._standings,
            self._stints,
            current_lap=self._current_lap,
            drs_open_threshold=self._config.drs_open_threshold,
            mom_ready_max_interval=self._config.mom_ready_max_interval,
            unranked_position=self._config.unranked_position,
        )
        return self._publish()

    # ------------------------------------------------------------------
    # Per-stream application
    # ------------------------------------------------------------------

    def _apply_locations(self, batch: list[Location] | None) -> None:
        if not batch:
            return
        roster = {driver.driver_number: driver for driver in self._roster}
        for number, sample in latest_per_key(batch).items():
            driver = roster.get(number)
            if driver is None:
                continue
            self._map_positions[number] = DriverMapPosition(
                driver_number=number,
                x=sample.x,
                y=sample.y,
                team_colour=driver.team_colour,
                acronym=driver.name_acronym,
            )
        self._watermarks.advance(STREAM_LOCATION, newest_date(batch))

    def _apply_race_control(self, messages: list[RaceControlMessage] | None) -> None:
        if messages is None:
            return
        if len(messages) < len(self._race_control):
            _logger.debug(
                "Race control returned %d messages, %d already held; ignoring partial log",
                len(messages),
                len(self._race_control),
            )
            return
        self._race_control = messages
        status = classify_track_status(messages, self._track_status)
        if status is not self._track_status:
            _logger.info("Track status for session %s: %s -> %s", self.session_key, self._track_status, status)
        self._track_status = status

        notification = self._notifications.observe(messages)
        if notification is not None:
            self._latest_notification = notification
            self._emit_notification(notification)

    def _apply_positions(self, batch: list[Position] | None) -> None:
        if not batch:
            return
        changed = self._positions.merge(batch)
        self._watermarks.advance(STREAM_POSITION, newest_date(batch))
        _logger.debug("Positions: %d records, %d drivers changed", len(batch), changed)

    def _apply_intervals(self, batch: list[Interval] | None) -> None:
        if not batch:
            return
        changed = self._intervals.merge(batch)
        self._watermarks.advance(STREAM_INTERVAL, newest_date(batch))
        _logger.debug("Intervals: %d records, %d drivers changed", len(batch), changed)

    def _apply_telemetry(self, batch: list[CarData] | None) -> None:
        if batch is None:
            return
        self._telemetry = latest_per_key(batch)

    def _expire_telemetry(self, since: datetime) -> None:
        # Kept samples must stay inside the telemetry window.
        self._telemetry = {
            number: sample
            for number, sample in self._telemetry.items()
            if sample.date is not None and sample.date >= since
        }

    def _apply_weather(self, sample: WeatherData | None) -> None:
        if sample is None:
            return
        if sample.session_key is not None and sample.session_key != self.session_key:
            return
        self._weather = sample
        self._watermarks.advance(STREAM_WEATHER, sample.date)

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    def _publish(self) -> LiveSnapshot:
        snapshot = LiveSnapshot(
            session_key=self.session_key,
            standings=tuple(self._standings),
            track_status=self._track_status,
            current_lap=self._current_lap,
            weather=self._weather,
            driver_map_positions=tuple(
                self._map_positions[number] for number in sorted(self._map_positions)
            ),
            race_control=tuple(self._race_control),
            published_at=self._clock(),
        )
        self._snapshot = snapshot
        if self._on_snapshot is not None:
            try:
                self._on_snapshot(snapshot)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)
        return snapshot

    def _emit_notification(self, message: RaceControlMessage) -> None:
        if self._on_notification is None:
            return
        try:
            self._on_notification(message)
        except Exception:
            _logger.debug("Notification listener failed", exc_info=True)
