"""Session model (practice, qualifying, sprint, race)."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import Field

from pyf1live.models._base import F1BaseModel, OpenF1Timestamp


class Session(F1BaseModel):
    """A single timed session of a race weekend.

    Instances are immutable.  The lifecycle controller replaces the whole
    object (``model_copy(update={"is_live": ...})``) whenever it
    re-evaluates which session is relevant.
    """

    session_key: int
    meeting_key: int | None = None
    circuit_key: int | None = None
    circuit_short_name: str = ""
    country_name: str = ""
    country_code: str = ""
    location: str = ""
    year: int | None = None
    date_start: OpenF1Timestamp = None
    date_end: OpenF1Timestamp = None
    session_name: str = ""
    session_type: str = ""
    is_live: bool = Field(default=False)
    """Derived by :func:`pyf1live.lifecycle.select_relevant_session`."""

    @property
    def is_race(self) -> bool:
        """Whether grid positions are meaningful for this session."""
        return "Race" in self.session_type or self.session_name == "Race"

    def is_within(self, now: datetime, live_window: timedelta) -> bool:
        """Whether *now* falls inside the session's live window.

        A session counts as live between its start and end, or for
        *live_window* after its start when the published end time has not
        caught up yet.
        """
        if self.date_start is None or self.date_start > now:
            return False
        if self.date_end is not None and now <= self.date_end:
            return True
        return now - self.date_start < live_window
