"""Long-running worker that keeps every pipeline timer going until SIGINT or SIGTERM."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.attendance_pipeline.attendance_pipeline.common.logging_utils import configure_logging
from src.attendance_pipeline.attendance_pipeline.container import build_container
from src.attendance_pipeline.attendance_pipeline.main import load_settings

logger = logging.getLogger("run_pipeline")


def main() -> None:
    settings_module, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger.info("Starting pipeline with %s", settings_module)

    container = build_container(
        db_config=settings.DB_CONFIG,
        biotime_config=settings.BIOTIME_CONFIG,
        pipeline=getattr(settings, "PIPELINE", {}),
    )

    if not container.ingestion_service.test_connection():
        logger.warning("BioTime is not reachable right now; cycles will keep retrying on schedule")

    stop = threading.Event()

    def _shutdown(signum, _frame):
        logger.info("Signal %s received, shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    container.employee_sync_runner.start()
    container.attendance_processor.start()
    container.queue_orchestrator.start()
    try:
        stop.wait()
    finally:
        container.queue_orchestrator.stop()
        container.attendance_processor.stop()
        container.employee_sync_runner.stop()


if __name__ == "__main__":
    main()
