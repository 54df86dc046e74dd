"""Latest-value-per-driver merging of timestamped feed batches.

This is the only component allowed to fold incoming records into the
running per-driver maps.  Keys missing from a batch keep their previous
value: an empty or partial page never erases known state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

from pyf1live.state.policy import should_accept_record


class _Stamped(Protocol):
    @property
    def date(self) -> datetime | None: ...


R = TypeVar("R", bound=_Stamped)


def _driver_key(record: Any) -> int:
    return int(record.driver_number)


def merge_latest(
    existing: Mapping[int, R],
    batch: Iterable[R],
    *,
    key: Callable[[R], int] = _driver_key,
) -> dict[int, R]:
    """Return a new map holding the newest record per key.

    A stored record is replaced only by a strictly newer one, so records
    with a timestamp equal to or older than what is held are ignored, no
    matter in which batch (or in which order inside a batch) they arrive.
    """
    merged: dict[int, R] = dict(existing)
    for record in batch:
        k = key(record)
        cached = merged.get(k)
        if should_accept_record(
            cached_ts=cached.date if cached is not None else None,
            incoming_ts=record.date,
            has_cached=cached is not None,
        ):
            merged[k] = record
    return merged


def latest_per_key(batch: Iterable[R], *, key: Callable[[R], int] = _driver_key) -> dict[int, R]:
    """Newest record per key within a single batch."""
    return merge_latest({}, batch, key=key)


def newest_date(records: Iterable[_Stamped]) -> datetime | None:
    """Latest timestamp among *records* (``None`` if none carry one)."""
    dates = [r.date for r in records if r.date is not None]
    return max(dates) if dates else None


class StreamMerger(Generic[R]):
    """Stateful newest-per-driver map for one stream."""

    def __init__(self, *, key: Callable[[R], int] = _driver_key) -> None:
        self._key = key
        self._latest: dict[int, R] = {}

    def merge(self, batch: Iterable[R]) -> int:
        """Fold *batch* in; return how many keys changed."""
        merged = merge_latest(self._latest, batch, key=self._key)
        changed = sum(1 for k, v in merged.items() if self._latest.get(k) is not v)
        self._latest = merged
        return changed

    def get(self, key: int) -> R | None:
        return self._latest.get(key)

    def latest(self) -> dict[int, R]:
        return dict(self._latest)

    def __len__(self) -> int:
        return len(self._latest)
