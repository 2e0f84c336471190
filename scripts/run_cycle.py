from __future__ import annotations

import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from src.attendance_pipeline.attendance_pipeline.common.logging_utils import configure_logging
from src.attendance_pipeline.attendance_pipeline.container import build_container
from src.attendance_pipeline.attendance_pipeline.main import load_settings


def main() -> int:
    _, settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(
        db_config=settings.DB_CONFIG,
        biotime_config=settings.BIOTIME_CONFIG,
        pipeline=getattr(settings, "PIPELINE", {}),
    )

    result = container.attendance_processor.run_cycle()
    print(json.dumps(result.as_dict(), indent=2))
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
