import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_gate"),
}

VERIFY_URL = os.getenv("VERIFY_URL", "")
VERIFY_API_KEY = os.getenv("VERIFY_API_KEY")
VERIFY_TIMEOUT_SECONDS = float(os.getenv("VERIFY_TIMEOUT_SECONDS", "8"))

BIOMETRIC_THRESHOLD = int(os.getenv("BIOMETRIC_THRESHOLD", "70"))
BIOMETRIC_REQUIRE_REFERENCE = bool(int(os.getenv("BIOMETRIC_REQUIRE_REFERENCE", "1")))
SHIFT_START = os.getenv("SHIFT_START", "09:00")
ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "UTC")
RECENT_CAPTURES_LIMIT = int(os.getenv("RECENT_CAPTURES_LIMIT", "10"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
