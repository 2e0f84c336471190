from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceProcessor
from .biotime.client import BioTimeClient
from .biotime.service import BioTimeIngestionService
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeDirectoryRepository
from .gaps.service import GapAnalyzer
from .polling.factory import QueueHandlerFactory
from .polling.mysql_polling_repository import MySQLPollingQueueRepository
from .polling.orchestrator import QueueOrchestrator
from .polling.service import PollingQueueService
from .punches.mysql_punch_repository import MySQLRawPunchRepository
from .scheduling.runner import IntervalRunner
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .summaries.mysql_summary_repository import MySQLDailySummaryRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    punches_repo: MySQLRawPunchRepository
    employees_repo: MySQLEmployeeDirectoryRepository
    shifts_repo: MySQLShiftRepository
    attendance_repo: MySQLAttendanceRepository
    summaries_repo: MySQLDailySummaryRepository
    queue_repo: MySQLPollingQueueRepository

    biotime_client: BioTimeClient
    ingestion_service: BioTimeIngestionService
    attendance_processor: AttendanceProcessor
    queue_service: PollingQueueService
    queue_orchestrator: QueueOrchestrator
    gap_analyzer: GapAnalyzer
    employee_sync_runner: IntervalRunner


def build_container(*, db_config: dict, biotime_config: dict, pipeline: Optional[dict] = None) -> Container:
    pipeline = pipeline or {}
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    punches_repo = MySQLRawPunchRepository(conn)
    employees_repo = MySQLEmployeeDirectoryRepository(conn)
    shifts_repo = MySQLShiftRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    summaries_repo = MySQLDailySummaryRepository(conn)
    queue_repo = MySQLPollingQueueRepository(conn)

    biotime_client = BioTimeClient(
        base_url=str(biotime_config["base_url"]),
        username=str(biotime_config["username"]),
        password=str(biotime_config["password"]),
        timeout=float(biotime_config.get("timeout", constants.BIOTIME_TIMEOUT_SECONDS)),
        verify_ssl=bool(biotime_config.get("verify_ssl", True)),
    )
    ingestion_service = BioTimeIngestionService(biotime_client, punches_repo, employees_repo)
    employee_sync_runner = IntervalRunner(
        "employee-sync",
        pipeline.get("employee_sync_interval_seconds", constants.DEFAULT_EMPLOYEE_SYNC_INTERVAL_SECONDS),
        ingestion_service.sync_employees,
    )
    attendance_processor = AttendanceProcessor(
        ingestion_service,
        punches_repo,
        attendance_repo,
        shifts_repo,
        employees_repo,
        summaries_repo,
        interval_seconds=pipeline.get("processing_interval_seconds", constants.DEFAULT_PROCESSING_INTERVAL_SECONDS),
        checkout_window_hours=pipeline.get("checkout_window_hours", constants.DEFAULT_CHECKOUT_WINDOW_HOURS),
        default_hours_worked=pipeline.get("default_hours_worked", constants.DEFAULT_HOURS_WORKED),
        lookback_days=pipeline.get("raw_lookback_days", constants.DEFAULT_RAW_LOOKBACK_DAYS),
        initial_pull_hours=pipeline.get("initial_pull_hours", constants.DEFAULT_INITIAL_PULL_HOURS),
        summary_days=pipeline.get("summary_days", constants.DEFAULT_SUMMARY_DAYS),
        batch_size=pipeline.get("batch_size", constants.DEFAULT_BATCH_SIZE),
    )
    queue_service = PollingQueueService(queue_repo)
    queue_orchestrator = QueueOrchestrator(
        queue_repo,
        QueueHandlerFactory.build(ingestion_service, attendance_processor),
        interval_seconds=pipeline.get("queue_interval_seconds", constants.DEFAULT_QUEUE_INTERVAL_SECONDS),
    )
    gap_analyzer = GapAnalyzer(
        punches_repo,
        ingestion_service,
        queue_service,
        window_hours=pipeline.get("gap_window_hours", constants.GAP_WINDOW_HOURS),
        fillable_days=pipeline.get("gap_fillable_days", constants.GAP_FILLABLE_DAYS),
        fill_delay_seconds=pipeline.get("gap_fill_delay_seconds", constants.GAP_FILL_DELAY_SECONDS),
    )

    return Container(
        conn=conn,
        punches_repo=punches_repo,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        attendance_repo=attendance_repo,
        summaries_repo=summaries_repo,
        queue_repo=queue_repo,
        biotime_client=biotime_client,
        ingestion_service=ingestion_service,
        attendance_processor=attendance_processor,
        queue_service=queue_service,
        queue_orchestrator=queue_orchestrator,
        gap_analyzer=gap_analyzer,
        employee_sync_runner=employee_sync_runner,
    )
