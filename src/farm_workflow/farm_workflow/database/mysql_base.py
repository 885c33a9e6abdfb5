from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..common.datetime_utils import parse_clock_time
from .connection import DatabaseConnection

Row = Dict[str, Any]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """Borrow a pooled connection for one unit of work.

    Commits when the block exits cleanly, rolls back otherwise; the connection
    always goes back to the pool.
    """

    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary, buffered=True)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Row]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Row]:
    return list(cur.fetchall() or [])


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as ``timedelta`` from mysql-connector; map to wall-clock ``time``."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)
    if isinstance(value, (str, bytes)):
        return parse_clock_time(value.decode() if isinstance(value, bytes) else value)
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
