from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.attendance_pipeline.attendance_pipeline.common.logging_utils import configure_logging
from src.attendance_pipeline.attendance_pipeline.container import build_container
from src.attendance_pipeline.attendance_pipeline.main import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Report gaps in raw punch storage and optionally backfill them.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--fill", action="store_true", help="pull every fillable gap now")
    mode.add_argument("--enqueue", action="store_true", help="queue gap_fill requests instead")
    args = parser.parse_args()

    _, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=settings.DB_CONFIG,
        biotime_config=settings.BIOTIME_CONFIG,
        pipeline=getattr(settings, "PIPELINE", {}),
    )
    analyzer = container.gap_analyzer

    analysis = analyzer.analyze()
    print(json.dumps(analysis.as_dict(), indent=2))

    if args.fill:
        report = analyzer.fill_gaps(analysis)
        print(f"Filled {report.filled}/{report.total_gaps} gap(s), {report.records_inserted} new record(s), {report.failed} failed")
        for error in report.errors:
            print(f"  - {error}")
    elif args.enqueue:
        items = analyzer.enqueue_backfill(analysis, requested_by="analyze_gaps")
        print(f"Queued {len(items)} gap_fill request(s)")


if __name__ == "__main__":
    main()
