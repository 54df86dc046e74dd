from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from conftest import BASE, SESSION_KEY, FakeClock, FakeFeedBackend, session_row, ts

from pyf1live._constants import STREAM_LOCATION, STREAM_POSITION, STREAM_WEATHER
from pyf1live.client import F1LiveClient
from pyf1live.config import F1LiveConfig
from pyf1live.ingestion.poller import PollingOrchestrator
from pyf1live.models import LiveSnapshot, RaceControlMessage, Session, TrackStatus

_ALL_ENDPOINTS = {
    "/location",
    "/race_control",
    "/position",
    "/intervals",
    "/car_data",
    "/weather",
    "/laps",
    "/stints",
}


def _race_session() -> Session:
    return Session.model_validate(session_row()).model_copy(update={"is_live": True})


def _seed_race(feed: FakeFeedBackend) -> None:
    feed.race_control = [
        {"date": ts(100), "message": "GREEN LIGHT - PIT EXIT OPEN", "lap_number": 1, "category": "Other"},
    ]
    feed.positions = [
        {"driver_number": 44, "position": 1, "date": ts(10), "session_key": SESSION_KEY},
        {"driver_number": 1, "position": 2, "date": ts(10), "session_key": SESSION_KEY},
        {"driver_number": 44, "position": 2, "date": ts(200), "session_key": SESSION_KEY},
        {"driver_number": 1, "position": 1, "date": ts(200), "session_key": SESSION_KEY},
    ]
    feed.intervals = [
        {"driver_number": 1, "gap_to_leader": 0, "interval": 0, "date": ts(200)},
        {"driver_number": 44, "gap_to_leader": 0.8, "interval": 0.8, "date": ts(200)},
    ]
    feed.car_data = [
        {"driver_number": 44, "drs": 12, "speed": 301, "date": ts(598)},
        {"driver_number": 1, "drs": 8, "speed": 297, "date": ts(598)},
    ]
    feed.locations = [
        {"driver_number": 44, "x": 1.0, "y": 2.0, "date": ts(300)},
        {"driver_number": 1, "x": 3.0, "y": 4.0, "date": ts(300)},
        {"driver_number": 99, "x": 9.0, "y": 9.0, "date": ts(300)},
    ]
    feed.weather = [{"air_temperature": 24.1, "track_temperature": 41.0, "rainfall": 0, "date": ts(120)}]
    feed.laps = [{"driver_number": 44, "lap_number": n, "date_start": ts(90 * n)} for n in (1, 2, 3)]
    feed.stints = [
        {"driver_number": 44, "stint_number": 1, "compound": "MEDIUM", "lap_start": 1, "tyre_age_at_start": 2},
        {"driver_number": 44, "stint_number": 2, "compound": "HARD", "lap_start": 3, "tyre_age_at_start": 0},
    ]


@pytest.fixture
def published() -> list[LiveSnapshot]:
    return []


@pytest.fixture
def notifications() -> list[RaceControlMessage]:
    return []


@pytest.fixture
def orchestrator(
    client: F1LiveClient,
    config: F1LiveConfig,
    clock: FakeClock,
    published: list[LiveSnapshot],
    notifications: list[RaceControlMessage],
) -> PollingOrchestrator:
    return PollingOrchestrator(
        client,
        _race_session(),
        config,
        clock=clock,
        on_snapshot=published.append,
        on_notification=notifications.append,
    )


@pytest.mark.asyncio
async def test_initialize_publishes_roster_standings_and_syncs_watermarks(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    published: list[LiveSnapshot],
) -> None:
    _seed_race(feed)

    snapshot = await orchestrator.initialize()

    assert snapshot is not None
    assert published == [snapshot]
    assert orchestrator.grid_positions == {44: 1, 1: 2}
    assert [row.name_acronym for row in snapshot.standings] == ["HAM", "VER"]
    assert [row.gap for row in snapshot.standings] == ["-", "-"]
    assert snapshot.standings[1].team_name == "Red Bull Racing"

    synced = BASE + timedelta(seconds=95)
    for stream in (STREAM_LOCATION, STREAM_POSITION, STREAM_WEATHER):
        assert orchestrator.watermarks.get(stream) == synced


@pytest.mark.asyncio
async def test_time_sync_falls_back_without_race_control(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    clock: FakeClock,
) -> None:
    await orchestrator.initialize()

    assert orchestrator.watermarks.get(STREAM_POSITION) == clock.now - timedelta(minutes=5)


@pytest.mark.asyncio
async def test_non_race_session_skips_grid(client: F1LiveClient, config: F1LiveConfig, clock: FakeClock) -> None:
    practice = Session.model_validate(session_row(name="Practice 1", session_type="Practice"))
    orchestrator = PollingOrchestrator(client, practice, config, clock=clock)

    snapshot = await orchestrator.initialize()

    assert snapshot is not None
    assert orchestrator.grid_positions == {}
    assert [row.grid_position for row in snapshot.standings] == [1, 2]


@pytest.mark.asyncio
async def test_tick_derives_standings_from_all_streams(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    clock: FakeClock,
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()

    snapshot = await orchestrator.tick()

    assert snapshot is not None
    ver, ham = snapshot.standings
    assert (ver.driver_number, ver.position, ver.pos_change) == (1, 1, 1)
    assert (ham.driver_number, ham.position, ham.pos_change) == (44, 2, -1)
    assert ver.gap == "LEADER"
    assert ver.interval == "-"
    assert ham.gap == "+0.800"
    assert ham.interval == "+0.800"
    assert ham.aero_status == "X-MODE"
    assert ver.aero_status == "Z-MODE"
    assert ham.mom_status == "READY"
    assert ver.mom_status == "UNAVAILABLE"
    assert (ham.tyre_compound, ham.tyre_age) == ("HARD", 1)

    assert snapshot.current_lap == 4
    assert snapshot.weather is not None
    assert snapshot.weather.air_temperature == pytest.approx(24.1)
    assert [(p.driver_number, p.x, p.y) for p in snapshot.driver_map_positions] == [(1, 3.0, 4.0), (44, 1.0, 2.0)]
    assert snapshot.driver_map_positions[1].acronym == "HAM"

    assert orchestrator.watermarks.get(STREAM_POSITION) == BASE + timedelta(seconds=200)
    assert orchestrator.watermarks.get(STREAM_LOCATION) == BASE + timedelta(seconds=300)
    assert feed.last_query("/car_data")["date>"] == (clock.now - timedelta(seconds=3)).isoformat()
    assert feed.last_query("/position")["date>"] == ts(95)


@pytest.mark.asyncio
async def test_partial_fetch_failures_keep_previous_stream_state(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()
    await orchestrator.tick()

    feed.failing = {"/position", "/intervals", "/car_data"}
    feed.positions.append({"driver_number": 44, "position": 1, "date": ts(400)})

    snapshot = await orchestrator.tick()

    assert snapshot is not None
    ver, ham = snapshot.standings
    assert (ver.driver_number, ham.driver_number) == (1, 44)
    assert ham.gap == "+0.800"
    assert ham.aero_status == "X-MODE"
    assert orchestrator.watermarks.get(STREAM_POSITION) == BASE + timedelta(seconds=200)


@pytest.mark.asyncio
async def test_tick_with_every_fetch_failing_publishes_nothing(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    published: list[LiveSnapshot],
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()
    first = await orchestrator.tick()

    feed.failing = set(_ALL_ENDPOINTS)
    result = await orchestrator.tick()

    assert result is None
    assert orchestrator.snapshot is first
    assert len(published) == 2


@pytest.mark.asyncio
async def test_empty_location_batch_changes_nothing(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()
    first = await orchestrator.tick()
    assert first is not None

    # Everything already consumed: the location query now returns nothing.
    second = await orchestrator.tick()

    assert second is not None
    assert second.driver_map_positions == first.driver_map_positions
    assert orchestrator.watermarks.get(STREAM_LOCATION) == BASE + timedelta(seconds=300)


@pytest.mark.asyncio
async def test_notifications_fire_once_per_new_message(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    notifications: list[RaceControlMessage],
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()

    await orchestrator.tick()
    await orchestrator.tick()
    assert [m.message for m in notifications] == ["GREEN LIGHT - PIT EXIT OPEN"]

    feed.race_control.append({"date": ts(500), "message": "SAFETY CAR DEPLOYED", "lap_number": 3})
    snapshot = await orchestrator.tick()

    assert snapshot is not None
    assert snapshot.track_status is TrackStatus.SC
    assert [m.message for m in notifications][-1] == "SAFETY CAR DEPLOYED"
    assert orchestrator.latest_notification is not None
    assert orchestrator.latest_notification.message == "SAFETY CAR DEPLOYED"
    assert len(notifications) == 2


@pytest.mark.asyncio
async def test_shorter_race_control_log_is_ignored(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    notifications: list[RaceControlMessage],
) -> None:
    _seed_race(feed)
    feed.race_control.append({"date": ts(500), "message": "RED FLAG", "lap_number": 3})
    await orchestrator.initialize()
    await orchestrator.tick()

    feed.race_control = feed.race_control[:1]
    snapshot = await orchestrator.tick()

    assert snapshot is not None
    assert snapshot.track_status is TrackStatus.RED
    assert len(snapshot.race_control) == 2
    assert len(notifications) == 1


@pytest.mark.asyncio
async def test_records_from_another_session_are_discarded(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
) -> None:
    _seed_race(feed)
    feed.positions.append({"driver_number": 44, "position": 1, "date": ts(250), "session_key": SESSION_KEY + 1})
    await orchestrator.initialize()

    snapshot = await orchestrator.tick()

    assert snapshot is not None
    assert [row.driver_number for row in snapshot.standings] == [1, 44]


@pytest.mark.asyncio
async def test_close_discards_in_flight_results(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    published: list[LiveSnapshot],
) -> None:
    _seed_race(feed)
    initial = await orchestrator.initialize()
    feed.hooks["/position"] = orchestrator.close

    result = await orchestrator.tick()

    assert result is None
    assert orchestrator.snapshot is initial
    assert published == [initial]
    assert await orchestrator.tick() is None


@pytest.mark.asyncio
async def test_tick_requested_while_running_is_skipped(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()
    gate = asyncio.Event()
    feed.blockers["/location"] = gate

    running = asyncio.create_task(orchestrator.tick())
    while feed.count("/location") == 0:
        await asyncio.sleep(0)

    assert await orchestrator.tick() is None

    gate.set()
    snapshot = await running
    assert snapshot is not None
    assert feed.count("/location") == 1


@pytest.mark.asyncio
async def test_tick_before_initialize_fetches_nothing(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    published: list[LiveSnapshot],
) -> None:
    _seed_race(feed)

    assert await orchestrator.tick() is None
    assert feed.calls == []
    assert published == []


@pytest.mark.asyncio
async def test_telemetry_outside_window_is_dropped_when_fetch_fails(
    feed: FakeFeedBackend,
    orchestrator: PollingOrchestrator,
    clock: FakeClock,
) -> None:
    _seed_race(feed)
    await orchestrator.initialize()
    first = await orchestrator.tick()
    assert first is not None
    assert {row.driver_number: row.aero_status for row in first.standings}[44] == "X-MODE"

    clock.advance(10)
    feed.failing = {"/car_data"}
    snapshot = await orchestrator.tick()

    assert snapshot is not None
    assert {row.aero_status for row in snapshot.standings} == {"Z-MODE"}
