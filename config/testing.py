import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_pipeline_test"),
}

BIOTIME_CONFIG = {
    "base_url": os.getenv("BIOTIME_URL", "http://biotime.test/"),
    "username": "test",
    "password": "test",
    "timeout": 5.0,
    "verify_ssl": False,
}

PIPELINE = {
    "processing_interval_seconds": 300,
    "queue_interval_seconds": 30,
    "employee_sync_interval_seconds": 21600,
    "gap_fill_delay_seconds": 0.0,
}

LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
