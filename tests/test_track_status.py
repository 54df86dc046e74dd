from __future__ import annotations

import pytest

from pyf1live.models import RaceControlMessage, TrackStatus
from pyf1live.state.track_status import NotificationTracker, classify_track_status


def _log(*texts: str) -> list[RaceControlMessage]:
    return [RaceControlMessage(message=text) for text in texts]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("CHEQUERED FLAG", TrackStatus.CHEQUERED),
        ("RED FLAG", TrackStatus.RED),
        ("VIRTUAL SAFETY CAR DEPLOYED", TrackStatus.VSC),
        ("VIRTUAL SAFETY CAR ENDING", TrackStatus.GREEN),
        ("SAFETY CAR DEPLOYED", TrackStatus.SC),
        ("SAFETY CAR IN THIS LAP", TrackStatus.GREEN),
        ("TRACK CLEAR", TrackStatus.GREEN),
        ("GREEN FLAG IN SECTOR 2", TrackStatus.GREEN),
        ("Safety Car Deployed", TrackStatus.SC),
    ],
)
def test_single_message_rules(text: str, expected: TrackStatus) -> None:
    assert classify_track_status(_log(text)) is expected


def test_vsc_ending_resolves_to_green() -> None:
    log = _log("VIRTUAL SAFETY CAR DEPLOYED", "VSC ENDING")

    assert classify_track_status(log) is TrackStatus.GREEN


def test_unrelated_later_message_does_not_hide_active_flag() -> None:
    sequence = [
        _log("GREEN FLAG"),
        _log("GREEN FLAG", "SAFETY CAR DEPLOYED"),
        _log("GREEN FLAG", "SAFETY CAR DEPLOYED", "CAR 11 (PER) TIME 1:32.101 DELETED"),
    ]

    statuses: list[TrackStatus] = []
    previous = TrackStatus.GREEN
    for log in sequence:
        previous = classify_track_status(log, previous)
        statuses.append(previous)

    assert statuses == [TrackStatus.GREEN, TrackStatus.SC, TrackStatus.SC]


def test_safety_car_in_this_lap_keeps_earlier_deployment() -> None:
    texts = ["GREEN FLAG", "SAFETY CAR DEPLOYED", "SAFETY CAR IN THIS LAP"]

    statuses: list[TrackStatus] = []
    previous = TrackStatus.GREEN
    for end in range(1, len(texts) + 1):
        previous = classify_track_status(_log(*texts[:end]), previous)
        statuses.append(previous)

    assert statuses == [TrackStatus.GREEN, TrackStatus.SC, TrackStatus.SC]


def test_chequered_latches() -> None:
    status = classify_track_status(_log("CHEQUERED FLAG"))
    assert status is TrackStatus.CHEQUERED

    later = classify_track_status(_log("CHEQUERED FLAG", "RED FLAG", "TRACK CLEAR"), status)
    assert later is TrackStatus.CHEQUERED

    # Even a log that no longer carries the message keeps it.
    assert classify_track_status(_log("GREEN FLAG"), status) is TrackStatus.CHEQUERED


def test_empty_log_is_green() -> None:
    assert classify_track_status([]) is TrackStatus.GREEN
    assert classify_track_status(_log("BLUE FLAG FOR CAR 2")) is TrackStatus.GREEN


def test_notification_tracker_emits_each_new_tail_once() -> None:
    tracker = NotificationTracker()
    log = _log("GREEN FLAG")

    first = tracker.observe(log)
    assert first is not None and first.message == "GREEN FLAG"
    assert tracker.observe(log) is None

    log = _log("GREEN FLAG", "DRS ENABLED")
    second = tracker.observe(log)
    assert second is not None and second.message == "DRS ENABLED"
    assert tracker.seen == 2


def test_notification_tracker_ignores_shorter_log() -> None:
    tracker = NotificationTracker()
    tracker.observe(_log("A", "B", "C"))

    assert tracker.observe(_log("A")) is None
    assert tracker.seen == 3
    assert tracker.observe(_log("A", "B", "C")) is None
