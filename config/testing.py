import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "farm_workflow_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

JWT_SECRET = "test-jwt-secret"
JWT_ACCESS_MINUTES = 15

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads-test")
MAX_PHOTO_BYTES = 5 * 1024 * 1024

API_BASE_URL = "http://testserver/api"
ATTENDANCE_POLL_SECONDS = 10
HTTP_TIMEOUT_SECONDS = 5.0

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
