from __future__ import annotations

import threading
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class RepeatingTimer:
    """Call ``callback`` every ``interval`` seconds on a daemon thread.

    Use as a context manager so the thread is always stopped and joined when
    the owning view or session goes away.
    """

    def __init__(self, interval: float, callback: Callable[[], None], *, name: Optional[str] = None):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = float(interval)
        self._callback = callback
        self._name = name or "repeating-timer"
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "RepeatingTimer":
        if self.running:
            return self
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        return self

    def stop(self, *, timeout: Optional[float] = None) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            try:
                self._callback()
            except Exception:
                # A failing tick must not kill the schedule.
                logger.exception("timer_tick_failed", timer=self._name)

    def __enter__(self) -> "RepeatingTimer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
