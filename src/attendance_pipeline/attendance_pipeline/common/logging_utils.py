from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logger setup for the app and the scripts. Safe to call more than once."""
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    # one line per HTTP request is noise at INFO
    logging.getLogger("urllib3").setLevel(logging.WARNING)
