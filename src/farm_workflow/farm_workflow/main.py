from __future__ import annotations

import importlib
from pathlib import Path
from typing import Optional

import structlog
from dotenv import load_dotenv
from flask import Flask, jsonify, send_from_directory
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import DEFAULT_ACCESS_TOKEN_MINUTES, MAX_PHOTO_BYTES
from .core.exceptions import (
    AuthenticationError,
    AuthExpired,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .logging_setup import install_request_id, setup_logging
from .submissions.controller import register as register_submissions
from .tasks.controller import register as register_tasks
from .users.controller import register as register_users

logger = structlog.get_logger(__name__)

_ERROR_STATUS = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthExpired, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def _error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        for cls, status in _ERROR_STATUS:
            if isinstance(e, cls):
                logger.info("request_rejected", error=type(e).__name__, status_code=status)
                return _error(str(e), status)
        logger.warning("domain_error", error=str(e))
        return _error(str(e), 400)

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(e):
        return _error("Photo exceeds the upload size limit", 413)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return _error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        logger.exception("unhandled_error")
        return _error("Internal server error", 500)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    max_photo_bytes = int(getattr(settings, "MAX_PHOTO_BYTES", MAX_PHOTO_BYTES))
    upload_dir = str(getattr(settings, "UPLOAD_DIR", "uploads"))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["UPLOAD_DIR"] = upload_dir
    # Multipart overhead on top of the photo itself.
    app.config["MAX_CONTENT_LENGTH"] = max_photo_bytes + 64 * 1024

    if container is None:
        logger.info(
            "starting",
            settings=settings_module,
            db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema_ready", tables=len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            ensure_demo_users(db_config)
            logger.info("demo_seed_ready")

        container = build_container(
            db_config=db_config,
            jwt_secret=str(getattr(settings, "JWT_SECRET", app.secret_key)),
            jwt_access_minutes=int(getattr(settings, "JWT_ACCESS_MINUTES", DEFAULT_ACCESS_TOKEN_MINUTES)),
            upload_dir=upload_dir,
            max_photo_bytes=max_photo_bytes,
        )

    install_request_id(app)
    register_error_handlers(app)

    @app.route("/uploads/<path:filename>", endpoint="uploads")
    def uploads(filename: str):
        return send_from_directory(Path(upload_dir).resolve(), filename)

    register_users(app, container)
    register_tasks(app, container)
    register_submissions(app, container)
    register_attendance(app, container)

    return app
