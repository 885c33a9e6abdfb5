"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_PHOTO_BYTES = 5 * 1024 * 1024
ALLOWED_PHOTO_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif", "webp"})

ATTENDANCE_POLL_SECONDS = 10
ELAPSED_TICK_SECONDS = 60
DEFAULT_HISTORY_DAYS = 30

DEFAULT_ACCESS_TOKEN_MINUTES = 15
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

CLOCK_IN_NOTE = "Worker clocked in via app"
CLOCK_OUT_NOTE = "Worker clocked out via app"
