"""Custom exception hierarchy for pyf1live."""

from __future__ import annotations


class F1LiveError(Exception):
    """Base exception for all pyf1live errors."""


class F1LiveConfigError(F1LiveError):
    """Invalid or missing configuration."""


class F1LiveTransportError(F1LiveError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class F1LiveConnectionError(F1LiveError):
    """No session could be acquired after exhausting all retries.

    Raised (or surfaced as the ``CONNECTION_ERROR`` lifecycle state) once
    the bounded acquisition retry gives up.  Consumers must restart the
    service to try again.
    """

    def __init__(self, message: str, *, attempts: int = 0) -> None:
        self.attempts = attempts
        super().__init__(message)


class F1LiveSessionError(F1LiveError):
    """An operation needs a session that is not (or no longer) available."""
