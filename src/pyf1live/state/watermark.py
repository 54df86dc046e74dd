"""Per-stream watermark cursor."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime


class WatermarkCursor:
    """Tracks the newest consumed timestamp of each stream.

    Bounds only ever move forward.  Until a stream has been advanced,
    :meth:`get` returns *origin* (the "beginning of session" bound).
    """

    def __init__(self, origin: datetime | None = None) -> None:
        self._origin = origin
        self._marks: dict[str, datetime] = {}

    @property
    def origin(self) -> datetime | None:
        return self._origin

    def get(self, stream: str) -> datetime | None:
        return self._marks.get(stream, self._origin)

    def advance(self, stream: str, new_latest: datetime | None) -> bool:
        """Move *stream* forward to *new_latest*; return whether it moved."""
        if new_latest is None:
            return False
        current = self._marks.get(stream)
        if current is not None and new_latest <= current:
            return False
        self._marks[stream] = new_latest
        return True

    def seed(self, streams: Iterable[str], value: datetime) -> None:
        for stream in streams:
            self.advance(stream, value)

    def snapshot(self) -> dict[str, datetime]:
        return dict(self._marks)
