from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import F1LiveTransportError
from pyf1live.ingestion.normalize import parse_timestamp

BASE = datetime(2025, 7, 6, 14, 0, tzinfo=UTC)
SESSION_KEY = 9947
MEETING_KEY = 1264

_STREAMS = {
    "/position": "positions",
    "/intervals": "intervals",
    "/car_data": "car_data",
    "/location": "locations",
    "/race_control": "race_control",
    "/weather": "weather",
    "/stints": "stints",
}


def ts(seconds: float) -> str:
    """ISO timestamp *seconds* after the session start."""
    return (BASE + timedelta(seconds=seconds)).isoformat()


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def session_row(
    session_key: int = SESSION_KEY,
    *,
    start: float = 0.0,
    duration: float = 7200.0,
    name: str = "Race",
    session_type: str = "Race",
) -> dict[str, Any]:
    return {
        "session_key": session_key,
        "meeting_key": MEETING_KEY,
        "location": "Silverstone",
        "country_name": "United Kingdom",
        "circuit_short_name": "Silverstone",
        "year": 2025,
        "date_start": ts(start),
        "date_end": ts(start + duration),
        "session_name": name,
        "session_type": session_type,
    }


def driver_row(number: int, acronym: str, team: str, colour: str = "FFFFFF") -> dict[str, Any]:
    return {
        "driver_number": number,
        "name_acronym": acronym,
        "full_name": f"Driver {acronym}",
        "team_name": team,
        "team_colour": colour,
        "session_key": SESSION_KEY,
        "meeting_key": MEETING_KEY,
    }


@dataclass
class FakeFeedBackend:
    """In-memory stand-in for the feed API.

    Rows are returned as stored; ``date>`` filters are honoured so the
    watermark behaviour of callers is observable.
    """

    sessions: dict[int, list[dict[str, Any]]] = field(default_factory=dict)
    drivers: list[dict[str, Any]] = field(default_factory=list)
    meeting_drivers: list[dict[str, Any]] = field(default_factory=list)
    positions: list[dict[str, Any]] = field(default_factory=list)
    intervals: list[dict[str, Any]] = field(default_factory=list)
    car_data: list[dict[str, Any]] = field(default_factory=list)
    locations: list[dict[str, Any]] = field(default_factory=list)
    race_control: list[dict[str, Any]] = field(default_factory=list)
    weather: list[dict[str, Any]] = field(default_factory=list)
    laps: list[dict[str, Any]] = field(default_factory=list)
    stints: list[dict[str, Any]] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    blockers: dict[str, asyncio.Event] = field(default_factory=dict)
    hooks: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    def count(self, endpoint: str) -> int:
        return sum(1 for called, _ in self.calls if called == endpoint)

    def last_query(self, endpoint: str) -> dict[str, str]:
        return [query for called, query in self.calls if called == endpoint][-1]

    async def get_json(self, endpoint: str, params: Any) -> list[dict[str, Any]]:
        query = dict(params)
        self.calls.append((endpoint, query))

        blocker = self.blockers.get(endpoint)
        if blocker is not None:
            await blocker.wait()
        hook = self.hooks.get(endpoint)
        if hook is not None:
            hook()
        if endpoint in self.failing:
            raise F1LiveTransportError(f"HTTP 503 from {endpoint}", status_code=503, endpoint=endpoint)

        if endpoint == "/sessions":
            return list(self.sessions.get(int(query["year"]), []))
        if endpoint == "/drivers":
            return list(self.meeting_drivers if "meeting_key" in query else self.drivers)
        if endpoint == "/laps":
            number = int(query["driver_number"])
            return [row for row in self.laps if row["driver_number"] == number]

        rows: list[dict[str, Any]] = getattr(self, _STREAMS[endpoint])
        since = parse_timestamp(query.get("date>"))
        if since is not None:
            rows = [row for row in rows if parse_timestamp(row.get("date")) and parse_timestamp(row["date"]) > since]
        return list(rows)


@pytest.fixture
def feed() -> FakeFeedBackend:
    return FakeFeedBackend(
        sessions={2025: [session_row()]},
        drivers=[
            driver_row(44, "HAM", "Mercedes-AMG Petronas F1 Team", "27F4D2"),
            driver_row(1, "VER", "Oracle Red Bull Racing", "3671C6"),
        ],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BASE + timedelta(minutes=10))


@pytest.fixture
def config() -> F1LiveConfig:
    return F1LiveConfig(min_roster_size=2, display_time_zone="UTC")


@pytest.fixture
def client(feed: FakeFeedBackend, config: F1LiveConfig) -> F1LiveClient:
    return F1LiveClient(config, transport=feed)
