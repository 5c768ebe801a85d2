"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_BIOMETRIC_THRESHOLD = 70
DEFAULT_VERIFY_TIMEOUT_SECONDS = 10.0
DEFAULT_REQUIRE_REFERENCE = True

DEFAULT_SHIFT_START = time(9, 0)
DEFAULT_ORG_TIMEZONE = "UTC"

DEFAULT_RECENT_CAPTURES_LIMIT = 10

VERIFICATION_UNAVAILABLE = "verification unavailable"
NO_ENROLLED_REFERENCE = "no enrolled reference"
