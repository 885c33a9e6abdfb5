from __future__ import annotations

from datetime import date, datetime, time

from src.farm_workflow.farm_workflow.attendance.model import AttendanceRecord, AttendanceStatistics
from src.farm_workflow.farm_workflow.attendance.reconcile import find_today_record, reconcile_clock_state
from src.farm_workflow.farm_workflow.core.enums import AttendanceStatus

TODAY = date(2026, 3, 2)


def _rec(rid, day, clock_in=None, clock_out=None, user_id="worker", status=AttendanceStatus.PRESENT):
    return AttendanceRecord(
        attendance_id=rid,
        user_id=user_id,
        work_date=day,
        status=status,
        clock_in=clock_in,
        clock_out=clock_out,
    )


def test_no_record_means_not_clocked_in():
    state = reconcile_clock_state(None, today=TODAY)
    assert not state.clocked_in
    assert state.started_at is None


def test_open_record_is_clocked_in_from_server_time():
    state = reconcile_clock_state(_rec("a", TODAY, clock_in=time(7, 45)), today=TODAY)
    assert state.clocked_in
    assert state.started_at == datetime(2026, 3, 2, 7, 45)


def test_closed_record_is_not_clocked_in():
    state = reconcile_clock_state(_rec("a", TODAY, time(7, 45), time(16, 0)), today=TODAY)
    assert not state.clocked_in


def test_record_marked_without_clock_in():
    state = reconcile_clock_state(_rec("a", TODAY, status=AttendanceStatus.ABSENT), today=TODAY)
    assert not state.clocked_in


def test_find_today_record_ignores_other_days_and_workers():
    records = [
        _rec("old", date(2026, 3, 1), time(7, 0)),
        _rec("mate", TODAY, time(6, 0), user_id="worker2"),
        _rec("mine", TODAY, time(8, 0)),
    ]
    assert find_today_record(records, today=TODAY, worker_id="worker").attendance_id == "mine"
    assert find_today_record(records[:1], today=TODAY) is None


def test_statistics_and_rate():
    records = [
        _rec("1", TODAY, status=AttendanceStatus.PRESENT),
        _rec("2", TODAY, status=AttendanceStatus.LATE),
        _rec("3", TODAY, status=AttendanceStatus.ABSENT),
        _rec("4", TODAY, status=AttendanceStatus.HALF_DAY),
        _rec("5", TODAY, status=AttendanceStatus.PRESENT),
        _rec("6", TODAY, status=AttendanceStatus.ABSENT),
    ]
    stats = AttendanceStatistics.of(records)
    assert stats.to_dict() == {"totalRecords": 6, "present": 2, "absent": 2, "halfDay": 1, "late": 1}
    assert stats.attendance_rate == 50
    assert AttendanceStatistics.of([]).attendance_rate == 0


def test_record_from_api_payload():
    rec = AttendanceRecord.from_dict(
        {
            "id": "a1",
            "user_id": "worker",
            "attendance_date": "2026-03-02T00:00:00.000Z",
            "status": "late",
            "clock_in": "08:05:00",
            "clock_out": None,
        }
    )
    assert rec.work_date == TODAY
    assert rec.clock_in == time(8, 5)
    assert rec.is_clocked_in
