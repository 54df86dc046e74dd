"""Shared helpers for feed endpoint modules.

This module centralizes the most repeated patterns:
- building the ``(session_key, since?)`` query
- fetching a record list and parsing it into typed models

It is internal to pyf1live and may change at any time.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from pyf1live._transport import QueryParams, Transport
from pyf1live.ingestion.normalize import isoformat

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def build_params(
    *,
    session_key: int | None = None,
    since: datetime | None = None,
    **extra: Any,
) -> list[tuple[str, str]]:
    """Build query parameters; ``since`` becomes a strict ``date>`` filter."""
    params: list[tuple[str, str]] = []
    if session_key is not None:
        params.append(("session_key", str(session_key)))
    for key, value in extra.items():
        if value is not None:
            params.append((key, str(value)))
    if since is not None:
        params.append(("date>", isoformat(since)))
    return params


def parse_records(endpoint: str, items: list[dict[str, Any]], model: type[M]) -> list[M]:
    """Validate *items* into *model*, dropping malformed records."""
    records: list[M] = []
    dropped = 0
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError:
            dropped += 1
    if dropped:
        _logger.debug("Dropped %d malformed records from %s", dropped, endpoint)
    return records


async def fetch_records(
    transport: Transport,
    endpoint: str,
    params: QueryParams,
    model: type[M],
) -> list[M]:
    """GET *endpoint* and parse every record into *model*."""
    items = await transport.get_json(endpoint, params)
    return parse_records(endpoint, items, model)
