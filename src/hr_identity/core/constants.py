"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_HOURS = 24
DEFAULT_REMEMBER_ME_DAYS = 30
DEFAULT_MAX_TOKEN_DAYS = 30
DEFAULT_REFRESH_WINDOW_HOURS = 2
DEFAULT_SWEEP_INTERVAL_MINUTES = 30
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5

MIN_PASSWORD_LENGTH = 6

JWT_ALGORITHM = "HS256"

DEFAULT_KEY_SEPARATORS = ("_", "-", ".", " ")
DEFAULT_KEY_PREFIXES: tuple[str, ...] = ()

DEFAULT_SESSION_LIST_LIMIT = 20
MAX_SESSION_LIST_LIMIT = 100
