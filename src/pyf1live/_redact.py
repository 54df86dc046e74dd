"""Helpers for compact debug logging.

Feed responses can hold tens of thousands of records (a full location
stream easily exceeds that).  This module shrinks payloads before they
are emitted in DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def truncate_for_log(value: Any, *, max_items: int = 3, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a shortened copy of *value* suitable for debug logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): truncate_for_log(v, max_items=max_items, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        head = [
            truncate_for_log(v, max_items=max_items, max_string=max_string, _depth=_depth + 1)
            for v in value[:max_items]
        ]
        if len(value) > max_items:
            head.append(f"<+{len(value) - max_items} more>")
        return head

    return repr(value)
