import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_pipeline"),
}

BIOTIME_CONFIG = {
    "base_url": os.getenv("BIOTIME_URL", ""),
    "username": os.getenv("BIOTIME_USERNAME", ""),
    "password": os.getenv("BIOTIME_PASSWORD", ""),
    "timeout": float(os.getenv("BIOTIME_TIMEOUT", "30")),
    "verify_ssl": bool(int(os.getenv("BIOTIME_VERIFY_SSL", "1"))),
}

PIPELINE = {
    "processing_interval_seconds": int(os.getenv("PROCESSING_INTERVAL_SECONDS", "300")),
    "queue_interval_seconds": int(os.getenv("QUEUE_INTERVAL_SECONDS", "30")),
    "employee_sync_interval_seconds": int(os.getenv("EMPLOYEE_SYNC_INTERVAL_SECONDS", "21600")),
    "checkout_window_hours": float(os.getenv("CHECKOUT_WINDOW_HOURS", "12")),
    "default_hours_worked": float(os.getenv("DEFAULT_HOURS_WORKED", "8")),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
