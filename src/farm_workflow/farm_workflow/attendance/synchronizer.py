"""Polling synchronizer for attendance views.

``AttendancePoller`` keeps one snapshot of server state, replaced wholesale on
every poll, and never runs two polls at once. ``WorkerClock`` derives the
worker's clock-in widget from that snapshot.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from ..common.datetime_utils import format_elapsed, now_local
from ..common.timers import RepeatingTimer
from ..core.constants import (
    ATTENDANCE_POLL_SECONDS,
    CLOCK_IN_NOTE,
    CLOCK_OUT_NOTE,
    DEFAULT_HISTORY_DAYS,
    ELAPSED_TICK_SECONDS,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthExpired, NetworkError, ValidationError
from .model import AttendanceSnapshot, ClockState
from .reconcile import find_today_record, reconcile_clock_state

logger = structlog.get_logger(__name__)

Fetcher = Callable[[], AttendanceSnapshot]


def daily_fetcher(api, *, clock: Callable[[], datetime] = now_local) -> Fetcher:
    """Manager view: today's records for the whole farm."""

    def fetch() -> AttendanceSnapshot:
        today = clock().date()
        records, stats = api.attendance(today, today)
        return AttendanceSnapshot(records=tuple(records), statistics=stats, fetched_at=clock())

    return fetch


def history_fetcher(api, *, days: int = DEFAULT_HISTORY_DAYS, clock: Callable[[], datetime] = now_local) -> Fetcher:
    """Worker view: own records for the last ``days`` days."""

    def fetch() -> AttendanceSnapshot:
        today = clock().date()
        records, stats = api.my_attendance(today - timedelta(days=days), today)
        return AttendanceSnapshot(records=tuple(records), statistics=stats, fetched_at=clock())

    return fetch


class AttendancePoller:
    def __init__(
        self,
        fetch: Fetcher,
        *,
        interval: Optional[float] = ATTENDANCE_POLL_SECONDS,
        on_update: Optional[Callable[[AttendanceSnapshot], None]] = None,
        on_error: Optional[Callable[[NetworkError], None]] = None,
        on_auth_expired: Optional[Callable[[AuthExpired], None]] = None,
    ):
        self._fetch = fetch
        self._interval = interval
        self._on_update = on_update
        self._on_error = on_error
        self._on_auth_expired = on_auth_expired

        self._lock = threading.Lock()
        self._apply_lock = threading.Lock()
        self._in_flight = False
        self._rerun = False
        self._generation = 0
        self._epoch = 0
        self._snapshot: Optional[AttendanceSnapshot] = None
        self._last_error: Optional[NetworkError] = None
        self._timer: Optional[RepeatingTimer] = None

    @property
    def snapshot(self) -> Optional[AttendanceSnapshot]:
        with self._lock:
            return self._snapshot

    @property
    def last_error(self) -> Optional[NetworkError]:
        return self._last_error

    @property
    def in_flight(self) -> bool:
        with self._lock:
            return self._in_flight

    def poll(self) -> bool:
        """Run one poll now. Returns False when skipped because one is in flight."""

        with self._lock:
            if self._in_flight:
                logger.debug("attendance_poll_skipped")
                return False
            self._in_flight = True
            generation = self._generation

        try:
            while True:
                with self._lock:
                    epoch = self._epoch
                snapshot = self._fetch_once()
                with self._apply_lock:
                    with self._lock:
                        current = generation == self._generation
                        # Fetched before the latest invalidate(): the server has moved on.
                        fresh = current and epoch == self._epoch
                        if fresh and snapshot is not None:
                            self._snapshot = snapshot
                        rerun = current and (self._rerun or not fresh)
                        self._rerun = False
                        if not rerun:
                            self._in_flight = False
                    if fresh and snapshot is not None and self._on_update is not None:
                        self._on_update(snapshot)
                if not rerun:
                    return True
        finally:
            with self._lock:
                self._in_flight = False

    def request_refresh(self) -> bool:
        """Poll immediately, or queue one follow-up poll if one is in flight."""

        with self._lock:
            if self._in_flight:
                self._rerun = True
                return False
        return self.poll()

    def invalidate(self) -> None:
        """Mark any fetch started so far as stale; its result will not be applied.

        Returns only once no result is being applied, so a caller can safely
        set state right after.
        """

        with self._apply_lock:
            with self._lock:
                self._epoch += 1
                if self._in_flight:
                    self._rerun = True

    def _fetch_once(self) -> Optional[AttendanceSnapshot]:
        try:
            snapshot = self._fetch()
        except AuthExpired as e:
            self.stop()
            if self._on_auth_expired is not None:
                self._on_auth_expired(e)
            raise
        except NetworkError as e:
            self._last_error = e
            logger.warning("attendance_poll_failed", error=str(e))
            if self._on_error is not None:
                self._on_error(e)
            return None
        self._last_error = None
        return snapshot

    def start(self, *, immediate: bool = True) -> "AttendancePoller":
        if immediate:
            self.poll()
        if self._interval and (self._timer is None or not self._timer.running):
            self._timer = RepeatingTimer(self._interval, self.poll, name="attendance-poller").start()
        return self

    def stop(self) -> None:
        """Stop the timer; results of a poll still in flight are discarded."""

        with self._lock:
            self._generation += 1
            self._rerun = False
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.stop()

    def __enter__(self) -> "AttendancePoller":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


class WorkerClock:
    """Clock-in widget state, always derived from the server's today record."""

    def __init__(
        self,
        api,
        *,
        worker_id: Optional[str] = None,
        clock: Callable[[], datetime] = now_local,
        poll_interval: Optional[float] = None,
        history_days: int = DEFAULT_HISTORY_DAYS,
        tick_seconds: float = ELAPSED_TICK_SECONDS,
        on_change: Optional[Callable[[ClockState, str], None]] = None,
    ):
        self._api = api
        self._worker_id = worker_id
        self._clock = clock
        self._tick_seconds = tick_seconds
        self._on_change = on_change

        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._state = ClockState()
        self._elapsed = "0h 0m"
        self._ticker_lock = threading.Lock()
        self._ticker: Optional[RepeatingTimer] = None

        self._poller = AttendancePoller(
            history_fetcher(api, days=history_days, clock=clock),
            interval=poll_interval,
            on_update=self._reconcile,
            on_auth_expired=self._on_auth_expired,
        )

    @property
    def state(self) -> ClockState:
        with self._state_lock:
            return self._state

    @property
    def elapsed(self) -> str:
        with self._state_lock:
            return self._elapsed

    @property
    def snapshot(self) -> Optional[AttendanceSnapshot]:
        return self._poller.snapshot

    def load(self) -> ClockState:
        self._poller.poll()
        return self.state

    def clock_in(self) -> ClockState:
        return self._write(clock_in=True)

    def clock_out(self) -> ClockState:
        return self._write(clock_in=False)

    def _write(self, *, clock_in: bool) -> ClockState:
        if not self._write_lock.acquire(blocking=False):
            raise ValidationError("A clock update is already in progress")
        try:
            now = self._clock().replace(microsecond=0)
            try:
                self._api.mark_attendance(
                    work_date=now.date(),
                    status=AttendanceStatus.PRESENT,
                    clock_in=now.time() if clock_in else None,
                    clock_out=None if clock_in else now.time(),
                    notes=CLOCK_IN_NOTE if clock_in else CLOCK_OUT_NOTE,
                )
            except AuthExpired:
                self.stop()
                raise
            logger.info("clock_in" if clock_in else "clock_out", worker_id=self._worker_id, at=now.isoformat())
            # Polls that started before the write must not undo it.
            self._poller.invalidate()
            self._apply(ClockState(clocked_in=True, started_at=now) if clock_in else ClockState())
        finally:
            self._write_lock.release()

        self._poller.request_refresh()
        return self.state

    def _reconcile(self, snapshot: AttendanceSnapshot) -> None:
        today = self._clock().date()
        record = find_today_record(snapshot.records, today=today, worker_id=self._worker_id)
        self._apply(reconcile_clock_state(record, today=today))

    def _apply(self, state: ClockState) -> None:
        with self._state_lock:
            self._state = state
        self._refresh_elapsed()
        with self._ticker_lock:
            if state.clocked_in:
                if self._ticker is None or not self._ticker.running:
                    self._ticker = RepeatingTimer(self._tick_seconds, self._refresh_elapsed, name="elapsed-ticker").start()
            elif self._ticker is not None:
                self._ticker.stop()
                self._ticker = None

    def _refresh_elapsed(self) -> None:
        with self._state_lock:
            state = self._state
            if state.clocked_in and state.started_at is not None:
                self._elapsed = format_elapsed(state.started_at, self._clock())
            else:
                self._elapsed = "0h 0m"
            elapsed = self._elapsed
        if self._on_change is not None:
            self._on_change(state, elapsed)

    def start(self) -> "WorkerClock":
        self._poller.start(immediate=True)
        return self

    def stop(self) -> None:
        self._poller.stop()
        self._stop_ticker()

    def _stop_ticker(self) -> None:
        with self._ticker_lock:
            if self._ticker is not None:
                self._ticker.stop()
                self._ticker = None

    def _on_auth_expired(self, error: AuthExpired) -> None:
        # The poller has already stopped itself; nothing should keep ticking.
        logger.info("worker_clock_stopped", reason=str(error))
        self._stop_ticker()

    def __enter__(self) -> "WorkerClock":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
