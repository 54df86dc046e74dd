"""Deterministic record merge policy.

This module intentionally contains *no* payload parsing. The ingestion/
pydantic boundary is responsible for producing typed records with
timestamps.
"""

from __future__ import annotations

from datetime import datetime


def should_accept_record(
    *,
    cached_ts: datetime | None,
    incoming_ts: datetime | None,
    has_cached: bool,
) -> bool:
    """Decide whether an incoming record replaces the stored one.

    Policy:
    - Nothing stored yet: accept.
    - Both timestamps known: accept only if incoming is strictly newer.
    - Incoming has no timestamp: reject (cannot prove it is newer).
    - Stored has no timestamp but incoming does: accept.
    """
    if not has_cached:
        return True
    if incoming_ts is None:
        return False
    if cached_ts is None:
        return True
    return incoming_ts > cached_ts
