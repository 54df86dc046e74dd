"""Base model for feed records.

Every feed record model inherits from :class:`F1BaseModel` which
provides:

* frozen, ``extra="ignore"`` pydantic configuration so unknown vendor
  fields never break parsing.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``None``, ``""``, ``"NaN"``) so the field default is used.

Timestamps use the :data:`OpenF1Timestamp` annotated type which coerces
ISO-8601 strings to timezone-aware UTC datetimes.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator

from pyf1live.ingestion.normalize import parse_timestamp

# Sentinel strings the feeds use for "not available".
_SENTINELS = frozenset({"", "NaN", "nan", "None", "null"})


def _coerce_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    return parsed


OpenF1Timestamp = Annotated[datetime | None, BeforeValidator(_coerce_timestamp)]
"""Annotated type that coerces ISO-8601 strings to aware UTC datetimes."""


class F1BaseModel(BaseModel):
    """Base for feed record models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_sentinels(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned


class TimestampedRecord(F1BaseModel):
    """A per-driver feed sample stamped with the time it was recorded."""

    driver_number: int
    date: OpenF1Timestamp = None
    session_key: int | None = None
    meeting_key: int | None = None
