"""Internal constants shared across the library."""

BASE_URL = "https://api.openf1.org/v1"
USER_AGENT = "pyf1live/0.1 (+aiohttp)"

# ------------------------------------------------------------------
# Standings derivation thresholds
# ------------------------------------------------------------------

#: DRS channel values above this mean the rear wing is open (X-MODE).
DRS_OPEN_THRESHOLD = 9

#: Interval to the car ahead (seconds) under which manual override is armed.
MOM_READY_MAX_INTERVAL = 1.2

#: Rank given to drivers without any position record so they sort last.
UNRANKED_POSITION = 99

AERO_OPEN = "X-MODE"
AERO_CLOSED = "Z-MODE"
MOM_READY = "READY"
MOM_UNAVAILABLE = "UNAVAILABLE"

GAP_LEADER = "LEADER"
NO_TIMING = "-"

# ------------------------------------------------------------------
# Stream names used for watermarks
# ------------------------------------------------------------------

STREAM_LOCATION = "location"
STREAM_POSITION = "position"
STREAM_INTERVAL = "interval"
STREAM_WEATHER = "weather"

#: Streams seeded by the time-sync step when a session goes live.
SYNCED_STREAMS: tuple[str, ...] = (
    STREAM_LOCATION,
    STREAM_POSITION,
    STREAM_INTERVAL,
    STREAM_WEATHER,
)
