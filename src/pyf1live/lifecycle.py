"""Session lifecycle: which session is relevant now, and when it goes live.

The controller owns two decisions:

* selection: among all sessions of the current (or, when empty, the
  previous) year pick the live one, else the next upcoming one, else the
  most recent past one.
* acquisition: retry a failed selection at a fixed interval a bounded
  number of times before reporting a persistent connection error.

Waiting is delegated to an injected ``sleep`` coroutine and the current
time to an injected ``clock`` so both can be driven from tests.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import F1LiveConnectionError
from pyf1live.models.session import Session

_logger = logging.getLogger(__name__)

_LIVE_WINDOW = timedelta(hours=4)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionState(StrEnum):
    ACQUIRING = "acquiring"
    LIVE = "live"
    UPCOMING = "upcoming"
    COMPLETED_FALLBACK = "completed_fallback"
    CONNECTION_ERROR = "connection_error"


def select_relevant_session(
    sessions: Sequence[Session],
    now: datetime,
    live_window: timedelta = _LIVE_WINDOW,
) -> Session | None:
    """Pick the live, else next upcoming, else most recent past session.

    The returned object is a copy with ``is_live`` set accordingly.
    """
    for session in sessions:
        if session.is_within(now, live_window):
            return session.model_copy(update={"is_live": True})

    dated = [s for s in sessions if s.date_start is not None]

    upcoming = [s for s in dated if s.date_start > now]  # type: ignore[operator]
    if upcoming:
        nearest = min(upcoming, key=lambda s: s.date_start)  # type: ignore[arg-type, return-value]
        return nearest.model_copy(update={"is_live": False})

    started = [s for s in dated if s.date_start <= now]  # type: ignore[operator]
    if started:
        latest = max(started, key=lambda s: s.date_start)  # type: ignore[arg-type, return-value]
        return latest.model_copy(update={"is_live": False})

    return None


def select_last_completed_race(sessions: Sequence[Session], now: datetime) -> Session | None:
    """Most recently finished session named ``Race``."""
    finished = [s for s in sessions if s.session_name == "Race" and s.date_end is not None and s.date_end < now]
    if not finished:
        return None
    return max(finished, key=lambda s: s.date_end)  # type: ignore[arg-type, return-value]


@dataclasses.dataclass
class BoundedRetry:
    """Fixed-interval retry budget.

    ``record_failure`` consumes one retry and tells the caller whether it
    may try again.  The object never sleeps itself.
    """

    max_attempts: int = 6
    interval: float = 5.0
    attempts: int = 0

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def record_failure(self) -> bool:
        if self.exhausted:
            return False
        self.attempts += 1
        return True

    def reset(self) -> None:
        self.attempts = 0


class SessionLifecycleController:
    """Decides the relevant session and detects when it goes live.

    Parameters
    ----------
    client
        Entered :class:`F1LiveClient` used to list sessions.
    on_live
        Awaited exactly once each time a session enters the LIVE state;
        hosts use it to (re)initialize polling for that session.
    """

    def __init__(
        self,
        client: F1LiveClient,
        config: F1LiveConfig | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        on_live: Callable[[Session], Awaitable[None]] | None = None,
    ) -> None:
        self._client = client
        self._config = config or client.config
        self._clock = clock
        self._sleep = sleep
        self._on_live = on_live
        self._state = SessionState.ACQUIRING
        self._session: Session | None = None
        self._last_completed: Session | None = None
        self._retry = BoundedRetry(
            max_attempts=self._config.acquire_max_retries,
            interval=self._config.acquire_retry_interval,
        )
        self._probing = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def last_completed(self) -> Session | None:
        return self._last_completed

    @property
    def retry(self) -> BoundedRetry:
        return self._retry

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    async def _load_sessions(self, year: int) -> tuple[list[Session], int]:
        sessions = await self._client.get_sessions(year)
        if sessions:
            return sessions, year
        return await self._client.get_sessions(year - 1), year - 1

    async def _find_last_completed(self, sessions: list[Session], year_used: int, now: datetime) -> Session | None:
        last = select_last_completed_race(sessions, now)
        if last is not None or year_used != now.year:
            return last
        try:
            previous_year = await self._client.get_sessions(now.year - 1)
        except Exception:
            _logger.debug("Previous season listing failed", exc_info=True)
            return None
        return select_last_completed_race(previous_year, now)

    async def evaluate(self) -> Session | None:
        """Fetch listings and return the relevant session (no state change)."""
        now = self._clock()
        sessions, year_used = await self._load_sessions(now.year)
        relevant = select_relevant_session(sessions, now, self._config.live_window)
        self._last_completed = await self._find_last_completed(sessions, year_used, now)
        return relevant

    def _state_for(self, session: Session) -> SessionState:
        if session.is_live:
            return SessionState.LIVE
        if session.date_start is not None and session.date_start > self._clock():
            return SessionState.UPCOMING
        return SessionState.COMPLETED_FALLBACK

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    async def _attempt(self) -> Session | None:
        try:
            return await self.evaluate()
        except Exception:
            _logger.warning("Session acquisition attempt failed", exc_info=True)
            return None

    async def acquire(self) -> Session:
        """Select the relevant session, retrying on failure.

        Raises
        ------
        F1LiveConnectionError
            When no session could be selected after all retries.  The
            controller is left in ``CONNECTION_ERROR`` and does not retry
            on its own.
        """
        self._state = SessionState.ACQUIRING
        self._retry.reset()

        while True:
            session = await self._attempt()
            if session is not None:
                break
            if not self._retry.record_failure():
                self._state = SessionState.CONNECTION_ERROR
                _logger.warning("No session acquired after %d retries", self._retry.attempts)
                raise F1LiveConnectionError(
                    "Could not acquire a session from the feed",
                    attempts=self._retry.attempts,
                )
            _logger.debug(
                "No session yet; retry %d/%d in %.1fs",
                self._retry.attempts,
                self._retry.max_attempts,
                self._retry.interval,
            )
            await self._sleep(self._retry.interval)

        self._session = session
        self._state = self._state_for(session)
        _logger.info("Selected session %s (%s): %s", session.session_key, session.session_name, self._state)
        if self._state is SessionState.LIVE and self._on_live is not None:
            await self._on_live(session)
        return session

    async def adopt(self, session: Session) -> SessionState:
        """Make *session* the selected one (e.g. picked by a user)."""
        now = self._clock()
        live = session.is_within(now, self._config.live_window)
        session = session.model_copy(update={"is_live": live})
        self._session = session
        self._state = self._state_for(session)
        _logger.info("Switched to session %s: %s", session.session_key, self._state)
        if self._state is SessionState.LIVE and self._on_live is not None:
            await self._on_live(session)
        return self._state

    # ------------------------------------------------------------------
    # Live-status probe
    # ------------------------------------------------------------------

    async def probe(self) -> bool:
        """Check whether the selected non-live session has started.

        Returns ``True`` only on the call that performs the transition to
        LIVE; ``on_live`` is awaited in that call and never again for the
        same session.
        """
        current = self._session
        if current is None or self._probing:
            return False
        if self._state not in (SessionState.UPCOMING, SessionState.COMPLETED_FALLBACK):
            return False

        self._probing = True
        try:
            try:
                check = await self.evaluate()
            except Exception:
                _logger.debug("Live-status probe failed", exc_info=True)
                return False

            if self._session is not current or self._state is SessionState.LIVE:
                return False
            if check is None or not check.is_live or check.session_key != current.session_key:
                return False

            self._session = check
            self._state = SessionState.LIVE
            _logger.info("Session %s is now live", check.session_key)
            if self._on_live is not None:
                await self._on_live(check)
            return True
        finally:
            self._probing = False
