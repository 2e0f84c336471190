import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_pipeline"),
}

BIOTIME_CONFIG = {
    "base_url": os.getenv("BIOTIME_URL", "http://localhost:8081/"),
    "username": os.getenv("BIOTIME_USERNAME", "admin"),
    "password": os.getenv("BIOTIME_PASSWORD", "admin"),
    "timeout": float(os.getenv("BIOTIME_TIMEOUT", "30")),
    "verify_ssl": bool(int(os.getenv("BIOTIME_VERIFY_SSL", "0"))),
}

# Overrides for the processing, queue and gap defaults in core/constants.py
PIPELINE = {
    "processing_interval_seconds": int(os.getenv("PROCESSING_INTERVAL_SECONDS", "300")),
    "queue_interval_seconds": int(os.getenv("QUEUE_INTERVAL_SECONDS", "30")),
    "employee_sync_interval_seconds": int(os.getenv("EMPLOYEE_SYNC_INTERVAL_SECONDS", "21600")),
    "checkout_window_hours": 12,
    "default_hours_worked": 8,
    "raw_lookback_days": 3,
    "initial_pull_hours": 24,
    "summary_days": 7,
    "batch_size": 1000,
    "gap_window_hours": 6,
    "gap_fillable_days": 30,
    "gap_fill_delay_seconds": 1.0,
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
