"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MIN_TTL_MINUTES = 1
MAX_TTL_MINUTES = 1440
DEFAULT_TTL_MINUTES = 60

# Bounded retries for store-level races (CAS losers, duplicate token values).
TOKEN_ISSUE_ATTEMPTS = 5
CAS_ATTEMPTS = 8
TOGGLE_ATTEMPTS = 5

DEFAULT_LOCK_TIMEOUT_SECONDS = 5.0
DEFAULT_LIST_LIMIT = 200
