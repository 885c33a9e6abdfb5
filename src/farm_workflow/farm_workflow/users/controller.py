from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..auth.decorators import make_token_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    token_required = make_token_required(container)

    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def login():
        body = request.get_json(silent=True) or {}
        result = container.auth_service.authenticate(body.get("email", ""), body.get("password", ""))
        return jsonify({
            "success": True,
            "data": {"accessToken": result.access_token, "user": result.user.to_dict()},
        })

    @app.route("/api/auth/me", methods=["GET"], endpoint="api_me")
    @token_required()
    def me():
        return jsonify({"success": True, "data": g.current_user.to_dict()})
