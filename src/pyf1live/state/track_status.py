"""Track status from the race-control message log."""

from __future__ import annotations

from collections.abc import Sequence

from pyf1live.models.race_control import RaceControlMessage
from pyf1live.models.snapshot import TrackStatus


def _match(text: str) -> TrackStatus | None:
    """Apply the flag rules, in precedence order, to one message."""
    if "CHEQUERED" in text:
        return TrackStatus.CHEQUERED
    if "RED FLAG" in text:
        return TrackStatus.RED
    if "VIRTUAL SAFETY CAR" in text and "ENDING" not in text:
        return TrackStatus.VSC
    if "SAFETY CAR" in text and "IN THIS LAP" not in text and "ENDING" not in text:
        return TrackStatus.SC
    if "TRACK CLEAR" in text or "GREEN FLAG" in text or "VSC ENDING" in text:
        return TrackStatus.GREEN
    return None


def classify_track_status(
    messages: Sequence[RaceControlMessage],
    previous: TrackStatus = TrackStatus.GREEN,
) -> TrackStatus:
    """Current track status given the full message log.

    The log is scanned from the newest message backwards and the first
    message matching a rule decides.  The whole log is considered every
    time: an unrelated later message must not hide a flag that was raised
    earlier and never withdrawn.  CHEQUERED is terminal.
    """
    if previous is TrackStatus.CHEQUERED:
        return TrackStatus.CHEQUERED
    for message in reversed(messages):
        status = _match(message.message.upper())
        if status is not None:
            return status
    return TrackStatus.GREEN


class NotificationTracker:
    """Emits each newly appended tail message exactly once."""

    def __init__(self) -> None:
        self._seen = 0

    @property
    def seen(self) -> int:
        return self._seen

    def observe(self, messages: Sequence[RaceControlMessage]) -> RaceControlMessage | None:
        if len(messages) <= self._seen:
            return None
        self._seen = len(messages)
        return messages[-1]
