"""Host-facing live timing runner.

:class:`LiveTimingService` wires the lifecycle controller and a polling
orchestrator to three cooperative timers:

* poll (``poll_interval``): one orchestrator tick, only while LIVE;
* clock (``clock_interval``): the wall clock in the display time zone;
* probe (``live_probe_interval``): live-status check, only while not LIVE.

Hosts register plain callables for snapshots, notifications and clock
ticks.  A failing listener is logged and never stops a timer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import F1LiveConnectionError, F1LiveSessionError
from pyf1live.ingestion.poller import NotificationCallback, PollingOrchestrator, SnapshotCallback
from pyf1live.lifecycle import SessionLifecycleController, SessionState
from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.session import Session
from pyf1live.models.snapshot import LiveSnapshot

_logger = logging.getLogger(__name__)

ClockCallback = Callable[[datetime], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _notify(listeners: list[Callable[[Any], None]], value: Any, kind: str) -> None:
    for listener in list(listeners):
        try:
            listener(value)
        except Exception:
            _logger.debug("%s listener failed", kind, exc_info=True)


def _subscribe(listeners: list[Callable[[Any], None]], callback: Callable[[Any], None]) -> Callable[[], None]:
    listeners.append(callback)

    def _unsubscribe() -> None:
        if callback in listeners:
            listeners.remove(callback)

    return _unsubscribe


class LiveTimingService:
    """Acquire the relevant session and keep a live snapshot current.

    Usage::

        async with LiveTimingService(config) as service:
            service.subscribe(print)
            await asyncio.sleep(60)

    Parameters
    ----------
    client
        Optional externally managed client.  When omitted the service
        creates one and enters/exits it in :meth:`start`/:meth:`stop`.
    """

    def __init__(
        self,
        config: F1LiveConfig | None = None,
        *,
        client: F1LiveClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._config = config or (client.config if client is not None else F1LiveConfig.from_env())
        self._owns_client = client is None
        self._client = client or F1LiveClient(self._config)
        self._clock = clock
        self._sleep = sleep
        self._zone = ZoneInfo(self._config.display_time_zone)

        self._controller = SessionLifecycleController(
            self._client,
            self._config,
            clock=clock,
            sleep=sleep,
            on_live=self._enter_live,
        )
        self._orchestrator: PollingOrchestrator | None = None
        self._pending: PollingOrchestrator | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._started = False
        self._connection_error: F1LiveConnectionError | None = None

        self._snapshot_listeners: list[SnapshotCallback] = []
        self._notification_listeners: list[NotificationCallback] = []
        self._clock_listeners: list[ClockCallback] = []

    async def __aenter__(self) -> LiveTimingService:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def config(self) -> F1LiveConfig:
        return self._config

    @property
    def controller(self) -> SessionLifecycleController:
        return self._controller

    @property
    def state(self) -> SessionState:
        return self._controller.state

    @property
    def session(self) -> Session | None:
        return self._controller.session

    @property
    def last_completed(self) -> Session | None:
        return self._controller.last_completed

    @property
    def snapshot(self) -> LiveSnapshot | None:
        return self._orchestrator.snapshot if self._orchestrator is not None else None

    @property
    def latest_notification(self) -> RaceControlMessage | None:
        return self._orchestrator.latest_notification if self._orchestrator is not None else None

    @property
    def connection_error(self) -> F1LiveConnectionError | None:
        return self._connection_error

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a snapshot listener; returns a callable that removes it."""
        return _subscribe(self._snapshot_listeners, callback)

    def on_notification(self, callback: NotificationCallback) -> Callable[[], None]:
        return _subscribe(self._notification_listeners, callback)

    def on_clock(self, callback: ClockCallback) -> Callable[[], None]:
        return _subscribe(self._clock_listeners, callback)

    def _publish_snapshot(self, snapshot: LiveSnapshot) -> None:
        _notify(self._snapshot_listeners, snapshot, "Snapshot")

    def _publish_notification(self, message: RaceControlMessage) -> None:
        _notify(self._notification_listeners, message, "Notification")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """Acquire a session and start the timers.

        A persistent acquisition failure is reported through
        :attr:`connection_error` and the ``CONNECTION_ERROR`` state; only
        the clock timer runs in that case.
        """
        if self._started:
            return self.state
        if self._owns_client:
            await self._client.__aenter__()
        self._started = True
        self._connection_error = None

        try:
            await self._controller.acquire()
        except F1LiveConnectionError as err:
            self._connection_error = err
            _logger.warning("Live timing unavailable: %s", err)

        self._start_timers()
        return self.state

    async def stop(self) -> None:
        """Cancel every timer and close the orchestrator."""
        await self._cancel_timers()
        self._close_orchestrator()
        if self._started and self._owns_client:
            await self._client.__aexit__(None, None, None)
        self._started = False

    async def switch_session(self, session: Session) -> SessionState:
        """Show *session* instead of the automatically selected one.

        Old timers are cancelled and the old orchestrator closed before the
        new session is adopted, so no result of the previous session can
        reach the new state.
        """
        if not self._started:
            raise F1LiveSessionError("Service not started. Call 'await service.start()' first.")
        await self._cancel_timers()
        self._close_orchestrator()
        self._connection_error = None
        state = await self._controller.adopt(session)
        self._start_timers()
        return state

    async def _enter_live(self, session: Session) -> None:
        self._close_orchestrator()
        orchestrator = PollingOrchestrator(
            self._client,
            session,
            self._config,
            clock=self._clock,
            on_snapshot=self._publish_snapshot,
            on_notification=self._publish_notification,
        )
        # Timers only see the orchestrator once it is initialized.
        self._pending = orchestrator
        try:
            await orchestrator.initialize()
        finally:
            if self._pending is orchestrator:
                self._pending = None
        if not orchestrator.closed:
            self._orchestrator = orchestrator

    def _close_orchestrator(self) -> None:
        for orchestrator in (self._pending, self._orchestrator):
            if orchestrator is not None:
                orchestrator.close()
        self._pending = None
        self._orchestrator = None

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_timers(self) -> None:
        self._tasks = [
            asyncio.create_task(self._poll_loop(), name="pyf1live-poll"),
            asyncio.create_task(self._clock_loop(), name="pyf1live-clock"),
            asyncio.create_task(self._probe_loop(), name="pyf1live-probe"),
        ]

    async def _cancel_timers(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _poll_loop(self) -> None:
        while True:
            await self._sleep(self._config.poll_interval)
            orchestrator = self._orchestrator
            if self.state is not SessionState.LIVE or orchestrator is None:
                continue
            await orchestrator.tick()

    async def _clock_loop(self) -> None:
        while True:
            _notify(self._clock_listeners, self._clock().astimezone(self._zone), "Clock")
            await self._sleep(self._config.clock_interval)

    async def _probe_loop(self) -> None:
        while True:
            await self._sleep(self._config.live_probe_interval)
            if self.state not in (SessionState.UPCOMING, SessionState.COMPLETED_FALLBACK):
                continue
            try:
                await self._controller.probe()
            except Exception:
                _logger.warning("Live-status probe failed", exc_info=True)
