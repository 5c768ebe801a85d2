import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_gate_test"),
}

VERIFY_URL = "http://verifier.test/api"
VERIFY_API_KEY = None
VERIFY_TIMEOUT_SECONDS = 0.5

BIOMETRIC_THRESHOLD = 70
BIOMETRIC_REQUIRE_REFERENCE = True
SHIFT_START = "09:00"
ORG_TIMEZONE = "UTC"
RECENT_CAPTURES_LIMIT = 10

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
