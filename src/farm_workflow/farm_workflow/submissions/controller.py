from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..auth.decorators import make_token_required
from ..container import Container
from ..core.enums import Role
from .model import PhotoUpload


def _uploaded_photo():
    file = request.files.get("photo")
    if file is None or not file.filename:
        return None
    return PhotoUpload(
        filename=file.filename,
        content=file.read(),
        content_type=file.mimetype or "application/octet-stream",
    )


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container)
    service = container.submission_service

    @app.route("/api/task-submissions/<task_id>/submit", methods=["POST"], endpoint="api_submit_task")
    @token_required(Role.WORKER, Role.MANAGER)
    def submit(task_id: str):
        submission_id = service.submit(
            g.current_user,
            task_id,
            notes=request.form.get("notes", ""),
            photo=_uploaded_photo(),
        )
        return jsonify({
            "success": True,
            "message": "Task submitted successfully",
            "data": {"submissionId": submission_id},
        }), 201

    @app.route("/api/task-submissions/<task_id>/submissions", methods=["GET"], endpoint="api_task_submissions")
    @token_required(Role.OWNER, Role.MANAGER, Role.WORKER)
    def task_submissions(task_id: str):
        subs = service.list_for_task(g.current_user, task_id)
        return jsonify({"success": True, "data": [s.to_dict() for s in subs]})

    @app.route("/api/task-submissions/submissions/all", methods=["GET"], endpoint="api_all_submissions")
    @token_required(Role.OWNER, Role.MANAGER)
    def all_submissions():
        subs = service.list_for_farm(g.current_user)
        return jsonify({"success": True, "data": [s.to_dict() for s in subs]})

    @app.route(
        "/api/task-submissions/submissions/<submission_id>/review",
        methods=["PATCH"],
        endpoint="api_review_submission",
    )
    @token_required(Role.OWNER, Role.MANAGER)
    def review(submission_id: str):
        body = request.get_json(silent=True) or {}
        submission = service.review(
            g.current_user,
            submission_id,
            status=str(body.get("status") or ""),
            review_notes=body.get("reviewNotes"),
        )
        return jsonify({
            "success": True,
            "message": f"Submission {submission.status.value} successfully",
            "data": submission.to_dict(),
        })
