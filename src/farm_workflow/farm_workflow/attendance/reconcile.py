"""Derive the worker's clock state from server records.

There is no locally persisted "clocked in" flag: the state is recomputed from
today's record on every load and every poll.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from .model import AttendanceRecord, ClockState


def find_today_record(
    records: Iterable[AttendanceRecord],
    *,
    today: date,
    worker_id: Optional[str] = None,
) -> Optional[AttendanceRecord]:
    for record in records:
        if record.work_date != today:
            continue
        if worker_id is not None and record.user_id and record.user_id != worker_id:
            continue
        return record
    return None


def reconcile_clock_state(record: Optional[AttendanceRecord], *, today: date) -> ClockState:
    if record is None or record.clock_in is None:
        return ClockState(clocked_in=False, record=record)
    if record.clock_out is not None:
        return ClockState(clocked_in=False, record=record)
    return ClockState(
        clocked_in=True,
        started_at=datetime.combine(today, record.clock_in),
        record=record,
    )
