"""Client configuration for pyf1live."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from pyf1live._constants import BASE_URL, DRS_OPEN_THRESHOLD, MOM_READY_MAX_INTERVAL, UNRANKED_POSITION
from pyf1live.exceptions import F1LiveConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class F1LiveConfig:
    """Client and polling configuration.

    Parameters
    ----------
    base_url : str
        Feed API base URL. Defaults to the public OpenF1 endpoint.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    request_retries : int
        Attempts per request before a transport error is raised.
    request_retry_delay : float
        Seconds to wait before retrying after a network error.
    poll_interval : float
        Seconds between polling ticks while a session is live.
    clock_interval : float
        Seconds between clock publications.
    live_probe_interval : float
        Seconds between live-status probes while waiting for a session.
    acquire_retry_interval : float
        Seconds between session acquisition attempts.
    acquire_max_retries : int
        Additional acquisition attempts after the first one fails.
    live_window_hours : float
        Hours after a session's start during which it is still treated
        as live when its end time has not been published yet.
    time_sync_offset : float
        Seconds subtracted from the newest race-control timestamp to
        seed the first incremental fetch window.
    time_sync_fallback : float
        Seconds before *now* used as the first fetch window when the
        session has no race-control messages yet.
    telemetry_window : float
        Rolling window, in seconds, for car telemetry fetches.
    drs_open_threshold : int
        DRS channel value above which a car is reported in X-MODE.
    mom_ready_max_interval : float
        Interval to the car ahead below which manual override is READY.
    unranked_position : int
        Rank used for drivers that have no position record yet.
    min_roster_size : int
        Below this many session drivers the meeting roster is used.
    display_time_zone : str
        IANA time zone for the clock published to hosts.
    api_trace_enabled : bool
        Log request/response payloads at DEBUG level.
    """

    base_url: str = BASE_URL
    request_timeout: float = 15.0
    request_retries: int = 3
    request_retry_delay: float = 1.5
    poll_interval: float = 2.0
    clock_interval: float = 1.0
    live_probe_interval: float = 30.0
    acquire_retry_interval: float = 5.0
    acquire_max_retries: int = 6
    live_window_hours: float = 4.0
    time_sync_offset: float = 5.0
    time_sync_fallback: float = 300.0
    telemetry_window: float = 3.0
    drs_open_threshold: int = DRS_OPEN_THRESHOLD
    mom_ready_max_interval: float = MOM_READY_MAX_INTERVAL
    unranked_position: int = UNRANKED_POSITION
    min_roster_size: int = 10
    display_time_zone: str = "Asia/Kolkata"
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.request_retries < 1:
            raise F1LiveConfigError("request_retries must be at least 1")
        if self.acquire_max_retries < 0:
            raise F1LiveConfigError("acquire_max_retries must not be negative")
        for name in ("poll_interval", "clock_interval", "live_probe_interval"):
            if getattr(self, name) <= 0:
                raise F1LiveConfigError(f"{name} must be positive")

    @property
    def live_window(self) -> timedelta:
        return timedelta(hours=self.live_window_hours)

    @classmethod
    def from_env(cls, **overrides: Any) -> F1LiveConfig:
        """Create configuration from environment variables.

        Reads optional ``F1LIVE_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        F1LiveConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "F1LIVE_BASE_URL": "base_url",
            "F1LIVE_DISPLAY_TIME_ZONE": "display_time_zone",
        }
        _ENV_FLOAT_MAP = {
            "F1LIVE_REQUEST_TIMEOUT": "request_timeout",
            "F1LIVE_REQUEST_RETRY_DELAY": "request_retry_delay",
            "F1LIVE_POLL_INTERVAL": "poll_interval",
            "F1LIVE_CLOCK_INTERVAL": "clock_interval",
            "F1LIVE_LIVE_PROBE_INTERVAL": "live_probe_interval",
            "F1LIVE_ACQUIRE_RETRY_INTERVAL": "acquire_retry_interval",
            "F1LIVE_LIVE_WINDOW_HOURS": "live_window_hours",
            "F1LIVE_TIME_SYNC_OFFSET": "time_sync_offset",
            "F1LIVE_TIME_SYNC_FALLBACK": "time_sync_fallback",
            "F1LIVE_TELEMETRY_WINDOW": "telemetry_window",
            "F1LIVE_MOM_READY_MAX_INTERVAL": "mom_ready_max_interval",
        }
        _ENV_INT_MAP = {
            "F1LIVE_REQUEST_RETRIES": "request_retries",
            "F1LIVE_ACQUIRE_MAX_RETRIES": "acquire_max_retries",
            "F1LIVE_DRS_OPEN_THRESHOLD": "drs_open_threshold",
            "F1LIVE_UNRANKED_POSITION": "unranked_position",
            "F1LIVE_MIN_ROSTER_SIZE": "min_roster_size",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val

        for converter, mapping in ((float, _ENV_FLOAT_MAP), (int, _ENV_INT_MAP)):
            for env_key, field_name in mapping.items():
                val = env.get(env_key)
                if val is None or field_name in overrides:
                    continue
                try:
                    config_kwargs[field_name] = converter(val)
                except ValueError as exc:
                    raise F1LiveConfigError(f"Invalid value for {env_key}: {val!r}") from exc

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("F1LIVE_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
