"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

# Source API
BIOTIME_TOKEN_TTL_HOURS = 23
BIOTIME_TRANSACTION_PAGE_SIZE = 10000
BIOTIME_EMPLOYEE_PAGE_SIZE = 100
BIOTIME_PAGE_DELAY_SECONDS = 0.1
BIOTIME_TIMEOUT_SECONDS = 30
ACCESS_CONTROL_TERMINAL_KEYWORD = "lock"

# Shift defaults
DEFAULT_SHIFT_START = time(9, 0)
DEFAULT_SHIFT_END = time(17, 0)
DEFAULT_GRACE_MINUTES = 30

# Attendance processing
DEFAULT_PROCESSING_INTERVAL_SECONDS = 5 * 60
DEFAULT_EMPLOYEE_SYNC_INTERVAL_SECONDS = 6 * 60 * 60
DEFAULT_CHECKOUT_WINDOW_HOURS = 12
DEFAULT_HOURS_WORKED = 8
DEFAULT_RAW_LOOKBACK_DAYS = 3
DEFAULT_INITIAL_PULL_HOURS = 24
DEFAULT_SUMMARY_DAYS = 7
DEFAULT_BATCH_SIZE = 1000

# Gap analysis
GAP_WINDOW_HOURS = 6
GAP_FILLABLE_DAYS = 30
GAP_FILL_DELAY_SECONDS = 1.0
BUSINESS_HOURS_START = 6
BUSINESS_HOURS_END = 22
BUSINESS_HOURS_RECORDS_PER_MINUTE = 3.0
OFF_HOURS_RECORDS_PER_MINUTE = 0.3

# Polling queue
DEFAULT_QUEUE_INTERVAL_SECONDS = 30
DEFAULT_HISTORY_LIMIT = 50
CANCELLED_MESSAGE = "Cancelled by user"
INTERRUPTED_MESSAGE = "Interrupted while processing"
INTERRUPTED_SWEEP_LIMIT = 100

# Employees no longer on the payroll are parked in this department by HR.
FORMER_EMPLOYEES_DEPARTMENT = "MIGRATED_TO_FORMER_EMPLOYEES"
