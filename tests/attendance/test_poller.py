from __future__ import annotations

import threading
from datetime import datetime

import pytest

from src.farm_workflow.farm_workflow.attendance.model import AttendanceSnapshot, AttendanceStatistics
from src.farm_workflow.farm_workflow.attendance.synchronizer import AttendancePoller, daily_fetcher
from src.farm_workflow.farm_workflow.core.exceptions import AuthExpired, NetworkError


def _snapshot(tag: int) -> AttendanceSnapshot:
    return AttendanceSnapshot(
        records=(),
        statistics=AttendanceStatistics(total_records=tag),
        fetched_at=datetime(2026, 3, 2, 9, 0, tag),
    )


class BlockingFetch:
    """Fetch that parks inside the call until released, counting calls."""

    def __init__(self):
        self.calls = 0
        self.entered = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()

    def __call__(self) -> AttendanceSnapshot:
        with self._lock:
            self.calls += 1
            n = self.calls
        self.entered.set()
        assert self.release.wait(5)
        return _snapshot(n)


def _run_in_thread(fn):
    t = threading.Thread(target=fn, daemon=True)
    t.start()
    return t


def test_poll_replaces_snapshot_each_time():
    counter = iter(range(1, 10))
    updates = []
    poller = AttendancePoller(lambda: _snapshot(next(counter)), interval=None, on_update=updates.append)

    poller.poll()
    poller.poll()

    assert poller.snapshot.statistics.total_records == 2
    assert [u.statistics.total_records for u in updates] == [1, 2]


def test_tick_during_in_flight_poll_is_skipped():
    fetch = BlockingFetch()
    poller = AttendancePoller(fetch, interval=None)
    t = _run_in_thread(poller.poll)
    assert fetch.entered.wait(5)

    assert poller.in_flight
    assert poller.poll() is False

    fetch.release.set()
    t.join(5)
    assert fetch.calls == 1
    assert not poller.in_flight


def test_refresh_during_in_flight_poll_is_coalesced_into_one_follow_up():
    fetch = BlockingFetch()
    poller = AttendancePoller(fetch, interval=None)
    t = _run_in_thread(poller.poll)
    assert fetch.entered.wait(5)

    assert poller.request_refresh() is False
    assert poller.request_refresh() is False

    fetch.release.set()
    t.join(5)
    assert fetch.calls == 2
    assert poller.snapshot.statistics.total_records == 2


def test_result_after_stop_is_discarded():
    fetch = BlockingFetch()
    updates = []
    poller = AttendancePoller(fetch, interval=None, on_update=updates.append)
    t = _run_in_thread(poller.poll)
    assert fetch.entered.wait(5)

    poller.stop()
    fetch.release.set()
    t.join(5)

    assert poller.snapshot is None
    assert updates == []


def test_invalidate_drops_in_flight_result_and_polls_again():
    fetch = BlockingFetch()
    updates = []
    poller = AttendancePoller(fetch, interval=None, on_update=updates.append)
    t = _run_in_thread(poller.poll)
    assert fetch.entered.wait(5)

    poller.invalidate()
    fetch.release.set()
    t.join(5)

    assert fetch.calls == 2
    assert [u.statistics.total_records for u in updates] == [2]
    assert not poller.in_flight


def test_auth_expired_hook_runs_once_stopped():
    seen = []

    def fetch():
        raise AuthExpired("Session expired")

    poller = AttendancePoller(fetch, interval=None, on_auth_expired=seen.append)
    with pytest.raises(AuthExpired):
        poller.poll()
    assert len(seen) == 1
    assert isinstance(seen[0], AuthExpired)


def test_network_error_is_reported_and_polling_continues():
    errors = []
    results = [NetworkError("down"), _snapshot(7)]

    def fetch():
        item = results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    poller = AttendancePoller(fetch, interval=None, on_error=errors.append)
    assert poller.poll() is True
    assert isinstance(poller.last_error, NetworkError)
    assert len(errors) == 1
    assert poller.snapshot is None

    poller.poll()
    assert poller.last_error is None
    assert poller.snapshot.statistics.total_records == 7


def test_auth_expired_stops_poller_and_propagates():
    def fetch():
        raise AuthExpired("Session expired")

    poller = AttendancePoller(fetch, interval=60)
    with pytest.raises(AuthExpired):
        poller.start()
    assert not poller.in_flight


def test_interval_timer_polls_repeatedly():
    ticks = threading.Semaphore(0)

    def fetch():
        ticks.release()
        return _snapshot(1)

    with AttendancePoller(fetch, interval=0.01):
        for _ in range(3):
            assert ticks.acquire(timeout=5)


def test_daily_fetcher_asks_for_today_only():
    calls = []

    class Api:
        def attendance(self, start, end, *, worker_id=None):
            calls.append((start, end))
            return [], AttendanceStatistics()

    snap = daily_fetcher(Api(), clock=lambda: datetime(2026, 3, 2, 12, 0))()
    assert calls == [(datetime(2026, 3, 2).date(), datetime(2026, 3, 2).date())]
    assert snap.records == ()
