import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_gate"),
}

# Face verification service
VERIFY_URL = os.getenv("VERIFY_URL", "http://localhost:8080/api")
VERIFY_API_KEY = os.getenv("VERIFY_API_KEY")
VERIFY_TIMEOUT_SECONDS = float(os.getenv("VERIFY_TIMEOUT_SECONDS", "10"))

# Admission and lateness policy
BIOMETRIC_THRESHOLD = int(os.getenv("BIOMETRIC_THRESHOLD", "70"))
BIOMETRIC_REQUIRE_REFERENCE = bool(int(os.getenv("BIOMETRIC_REQUIRE_REFERENCE", "1")))
SHIFT_START = os.getenv("SHIFT_START", "09:00")
ORG_TIMEZONE = os.getenv("ORG_TIMEZONE", "UTC")
RECENT_CAPTURES_LIMIT = int(os.getenv("RECENT_CAPTURES_LIMIT", "10"))

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
