from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..auth.decorators import make_token_required
from ..container import Container
from ..core.enums import Role
from .model import AttendanceStatistics


def _records_payload(records) -> dict:
    return {
        "records": [r.to_dict() for r in records],
        "statistics": AttendanceStatistics.of(records).to_dict(),
    }


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container)
    service = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="api_mark_attendance")
    @token_required(Role.OWNER, Role.MANAGER, Role.WORKER)
    def mark():
        body = request.get_json(silent=True) or {}
        result = service.mark(
            g.current_user,
            work_date=body.get("date"),
            status=body.get("status"),
            clock_in=body.get("clockIn"),
            clock_out=body.get("clockOut"),
            notes=body.get("notes"),
            user_id=body.get("userId"),
        )
        if result.created:
            return jsonify({
                "success": True,
                "message": "Attendance marked successfully",
                "data": {"id": result.attendance_id},
            }), 201
        return jsonify({
            "success": True,
            "message": "Attendance updated successfully",
            "data": {"id": result.attendance_id},
        })

    @app.route("/api/attendance/bulk", methods=["POST"], endpoint="api_bulk_attendance")
    @token_required(Role.OWNER, Role.MANAGER)
    def bulk():
        body = request.get_json(silent=True) or {}
        result = service.bulk_mark(
            g.current_user,
            work_date=body.get("date"),
            records=body.get("attendanceRecords") or [],
        )
        return jsonify({
            "success": True,
            "message": f"Attendance marked for {len(result.marked)} workers",
            "data": result.to_dict(),
        })

    @app.route("/api/attendance", methods=["GET"], endpoint="api_attendance")
    @token_required(Role.OWNER, Role.MANAGER)
    def list_attendance():
        records = service.list_for_farm(
            g.current_user,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
            worker_id=request.args.get("workerId"),
        )
        return jsonify({"success": True, "data": _records_payload(records)})

    @app.route("/api/attendance/my-attendance", methods=["GET"], endpoint="api_my_attendance")
    @token_required(Role.WORKER, Role.MANAGER)
    def my_attendance():
        records = service.list_mine(
            g.current_user,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return jsonify({"success": True, "data": _records_payload(records)})

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="api_attendance_summary")
    @token_required(Role.OWNER, Role.MANAGER, Role.WORKER)
    def summary():
        result = service.summary(
            g.current_user,
            worker_id=request.args.get("workerId"),
            month=request.args.get("month"),
            year=request.args.get("year"),
        )
        return jsonify({"success": True, "data": result.to_dict()})
