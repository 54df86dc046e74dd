"""Normalization helpers.

Centralizes defensive parsing and placeholder handling.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC. Unparseable input yields ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def isoformat(value: datetime) -> str:
    """Format a datetime the way the feed API expects in filters."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


# Ordered: the first matching rule wins, so sponsor-heavy names that
# contain another team's token (e.g. "RB" in "Visa Cash App RB") come first.
_TEAM_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("stake",), "Kick Sauber"),
    (("kick", "sauber"), "Kick Sauber"),
    (("visa",), "VCARB"),
    (("vcarb",), "VCARB"),
    (("audi",), "Audi"),
    (("haas",), "Haas F1 Team"),
    (("aston",), "Aston Martin"),
    (("red bull",), "Red Bull Racing"),
    (("mercedes",), "Mercedes"),
    (("ferrari",), "Ferrari"),
    (("mclaren",), "McLaren"),
    (("alpine",), "Alpine"),
    (("williams",), "Williams"),
)


def normalize_team_name(name: str | None) -> str:
    """Collapse sponsor variants of a team name to its canonical form."""
    if not name:
        return "Unknown"
    lowered = name.lower()
    for tokens, canonical in _TEAM_RULES:
        if all(token in lowered for token in tokens):
            return canonical
    if lowered == "rb" or lowered.startswith("rb "):
        return "VCARB"
    return name
