from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalRunner:
    """Calls a function on a fixed interval from a daemon thread.

    A failing call is logged and the timer keeps going; the next tick runs
    regardless of how the previous one ended.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], object],
        *,
        run_immediately: bool = True,
    ):
        self.name = name
        self.interval_seconds = float(interval_seconds)
        self._func = func
        self._run_immediately = run_immediately
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        with self._lock:
            if self.running:
                logger.warning("%s already running", self.name)
                return False
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
            self._thread.start()
        logger.info("%s started (every %ss)", self.name, self.interval_seconds)
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            thread = self._thread
            if thread is None:
                return False
            self._stop_event.set()
            self._thread = None
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.info("%s stopped", self.name)
        return True

    def _loop(self) -> None:
        if self._run_immediately:
            self._tick()
        while not self._stop_event.wait(self.interval_seconds):
            self._tick()

    def _tick(self) -> None:
        try:
            self._func()
        except Exception:
            logger.exception("%s tick failed", self.name)
