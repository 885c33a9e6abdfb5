from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Iterable

import mysql.connector
import structlog
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = structlog.get_logger(__name__)

DEMO_FARM_NAME = "Demo Farm"


def _connect(target: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        kwargs["database"] = target.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql must work whatever the configured database name is.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quotes and skip '--' comment lines."""

    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    buf: list[str] = []
    quote = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def run_sql_file(db_config: dict, *, path: str | Path) -> int:
    """Execute every statement of a SQL file; returns the statement count."""

    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))

    conn = _connect(target)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = run_sql_file(db_config, path=schema_path)
    logger.info("schema_applied", statements=count, database=db_config.get("database"))


def ensure_demo_users(db_config: dict) -> dict[str, str]:
    """Create (or reset) the demo farm and one account per role.

    Returns a mapping of role -> user id.
    """

    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        cur.execute("SELECT id FROM farms WHERE name=%s", (DEMO_FARM_NAME,))
        row = cur.fetchone()
        farm_id = row["id"] if row else str(uuid.uuid4())
        if not row:
            cur.execute("INSERT INTO farms (id, name) VALUES (%s, %s)", (farm_id, DEMO_FARM_NAME))

        def upsert_user(full_name: str, email: str, password: str, role: str) -> str:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET full_name=%s, password_hash=%s, role=%s, farm_id=%s, is_active=1
                    WHERE email=%s
                    """,
                    (full_name, password_hash, role, farm_id, email),
                )
                return existing["id"]
            user_id = str(uuid.uuid4())
            cur.execute(
                """
                INSERT INTO users (id, full_name, email, password_hash, role, farm_id)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                (user_id, full_name, email, password_hash, role, farm_id),
            )
            return user_id

        ids = {
            "farm_owner": upsert_user("Olivia Owner", "owner@farm.local", "owner123", "farm_owner"),
            "farm_manager": upsert_user("Marco Manager", "manager@farm.local", "manager123", "farm_manager"),
            "field_worker": upsert_user("Wanda Worker", "worker@farm.local", "worker123", "field_worker"),
            "viewer": upsert_user("Victor Viewer", "viewer@farm.local", "viewer123", "viewer"),
        }
        cur.execute("UPDATE farms SET owner_id=%s WHERE id=%s", (ids["farm_owner"], farm_id))

        cur.execute("SELECT COUNT(*) AS n FROM tasks WHERE farm_id=%s", (farm_id,))
        if int(cur.fetchone()["n"]) == 0:
            for title, priority in (("Irrigate north field", "high"), ("Feed the goats", "medium")):
                cur.execute(
                    """
                    INSERT INTO tasks (id, farm_id, title, priority, status, assigned_to, created_by, location, estimated_hours)
                    VALUES (%s, %s, %s, %s, 'pending', %s, %s, %s, %s)
                    """,
                    (str(uuid.uuid4()), farm_id, title, priority, ids["field_worker"], ids["farm_manager"], "Main farm", 2),
                )

        conn.commit()
        return ids
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
