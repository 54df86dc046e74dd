"""HTTP transport for the feed API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any, Protocol

import aiohttp

from pyf1live._constants import USER_AGENT
from pyf1live._redact import truncate_for_log
from pyf1live.config import F1LiveConfig
from pyf1live.exceptions import F1LiveTransportError

_logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: QueryParams) -> list[dict[str, Any]]:
        ...


class HttpTransport:
    """aiohttp-backed transport with bounded per-request retries."""

    def __init__(self, config: F1LiveConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def _get_once(self, url: str, endpoint: str, params: QueryParams) -> list[dict[str, Any]]:
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        try:
            async with self._http.get(url, params=list(params), headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise F1LiveTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except F1LiveTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise F1LiveTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise F1LiveTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        # Single-object answers are normalized to a one-element list.
        if isinstance(body, dict):
            body = [body]
        if not isinstance(body, list):
            raise F1LiveTransportError(
                f"Unexpected payload type from {endpoint}: {type(body).__name__}",
                endpoint=endpoint,
            )
        return [item for item in body if isinstance(item, dict)]

    async def get_json(self, endpoint: str, params: QueryParams) -> list[dict[str, Any]]:
        """GET *endpoint* and return the decoded list of records.

        Non-2xx answers are retried immediately; network failures are
        retried after ``request_retry_delay`` seconds.  The last error is
        raised once ``request_retries`` attempts have been used.
        """
        url = f"{self._config.base_url}{endpoint}"
        last_error: F1LiveTransportError | None = None

        for attempt in range(1, self._config.request_retries + 1):
            _logger.debug("GET %s params=%s attempt=%d", url, params, attempt)
            try:
                records = await self._get_once(url, endpoint, params)
            except F1LiveTransportError as exc:
                last_error = exc
                _logger.debug("GET %s failed attempt=%d: %s", endpoint, attempt, exc)
                if attempt < self._config.request_retries and exc.status_code is None:
                    await asyncio.sleep(self._config.request_retry_delay)
                continue

            if self._config.api_trace_enabled:
                _logger.debug("GET %s -> %d records %s", endpoint, len(records), truncate_for_log(records))
            return records

        assert last_error is not None  # noqa: S101
        raise last_error
