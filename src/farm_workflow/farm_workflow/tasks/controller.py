from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..auth.decorators import make_token_required
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container)

    @app.route("/api/tasks/my-tasks", methods=["GET"], endpoint="api_my_tasks")
    @token_required(Role.WORKER, Role.MANAGER)
    def my_tasks():
        tasks, stats = container.task_service.list_my_tasks(g.current_user)
        return jsonify({
            "success": True,
            "data": {"tasks": [t.to_dict() for t in tasks], "statistics": stats.to_dict()},
        })

    @app.route("/api/tasks/<task_id>/status", methods=["PATCH"], endpoint="api_task_status")
    @token_required(Role.OWNER, Role.MANAGER, Role.WORKER)
    def update_status(task_id: str):
        body = request.get_json(silent=True) or {}
        task = container.task_service.update_status(g.current_user, task_id, body.get("status", ""))
        return jsonify({"success": True, "data": task.to_dict()})
