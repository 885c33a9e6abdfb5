from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "id, full_name, email, password_hash, role, farm_id, is_active"


def _to_user(r: Dict[str, Any]) -> User:
    return User(
        user_id=str(r["id"]),
        full_name=r["full_name"],
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        farm_id=r.get("farm_id"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE id=%s", (user_id,))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email.strip().lower(),))
            r = fetchone(cur)
            return _to_user(r) if r else None
