from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

import mysql.connector

from ..core.exceptions import UpstreamFailure
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)``; commit on success, roll back on error.

    Driver errors surface as :class:`UpstreamFailure` with the driver message.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise UpstreamFailure(str(exc)) from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        conn.rollback()
        raise UpstreamFailure(str(exc)) from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Iterable[Any]) -> Tuple[str, Tuple[Any, ...]]:
    """``("%s,%s,...", params)`` for an ``IN (...)`` filter. Callers skip empty input."""

    params = tuple(values)
    return ",".join(["%s"] * len(params)), params


def normalize_hhmm(value: Any) -> Optional[str]:
    """Normalize a stored time value to ``HH:MM``.

    mysql-connector can return TIME as datetime.time, datetime.timedelta or a
    string (e.g. '08:30:00') depending on the column type and driver build.
    """

    if value is None:
        return None

    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"

    if isinstance(value, timedelta):
        total_minutes = (int(value.total_seconds()) % 86400) // 60
        return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        return f"{int(parts[0]):02d}:{int(parts[1]):02d}"

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")


def dump_json(value: Optional[dict]) -> Optional[str]:
    if not value:
        return None
    return json.dumps(value, default=str)


def load_json(value: Any) -> Optional[dict]:
    """JSON columns come back as ``str`` or ``bytes`` depending on the driver build."""

    if value is None or isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value) if value else None
