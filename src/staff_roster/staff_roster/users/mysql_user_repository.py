from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import ExperienceLevel, PPType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import User
from .repository import UserRepository

_SELECT = """
    SELECT u.user_id, u.employee_id, u.first_name, u.last_name, u.store_id, u.role_id,
           r.name AS role_name, u.experience_level, u.pp_type, u.week_offs_count,
           u.is_active, u.created_at, u.deleted_at
    FROM users u
    LEFT JOIN roles r ON r.role_id = u.role_id
"""


def _to_user(row: dict) -> User:
    return User(
        user_id=row["user_id"],
        employee_id=row["employee_id"],
        first_name=row["first_name"],
        last_name=row.get("last_name") or "",
        store_id=row["store_id"],
        role_id=row.get("role_id"),
        role_name=row.get("role_name"),
        experience_level=ExperienceLevel(row["experience_level"]) if row.get("experience_level") else None,
        pp_type=PPType(row["pp_type"]) if row.get("pp_type") else None,
        week_offs_count=int(row.get("week_offs_count") or 0),
        is_active=bool(row.get("is_active", True)),
        created_at=row.get("created_at"),
        deleted_at=row.get("deleted_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE u.user_id=%s AND u.deleted_at IS NULL", (user_id,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_by_employee_prefix(self, *, store_id: str, prefix: str) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE u.store_id=%s AND u.employee_id LIKE %s AND u.deleted_at IS NULL
                ORDER BY u.employee_id
                """,
                (store_id, f"{prefix}%"),
            )
            return [_to_user(r) for r in fetchall(cur)]

    def exists_with_employee_prefix(self, *, store_id: str, prefix: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM users
                WHERE store_id=%s AND employee_id LIKE %s AND deleted_at IS NULL
                LIMIT 1
                """,
                (store_id, f"{prefix}%"),
            )
            return fetchone(cur) is not None

    def create_user(self, user: User, *, created_by: str) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(
                    user_id, employee_id, first_name, last_name, store_id, role_id,
                    experience_level, pp_type, week_offs_count, is_active, created_by, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, CURRENT_TIMESTAMP))
                """,
                (
                    user.user_id,
                    user.employee_id,
                    user.first_name,
                    user.last_name,
                    user.store_id,
                    user.role_id,
                    user.experience_level.value if user.experience_level else None,
                    user.pp_type.value if user.pp_type else None,
                    user.week_offs_count,
                    1 if user.is_active else 0,
                    created_by,
                    user.created_at,
                ),
            )
            return user.user_id

    def delete_many(self, user_ids: Iterable[str]) -> int:
        marks, params = in_clause(user_ids)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM users WHERE user_id IN ({marks})", params)
            return int(cur.rowcount or 0)
