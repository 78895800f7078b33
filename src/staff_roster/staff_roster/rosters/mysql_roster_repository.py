from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import RosterStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Roster
from .repository import RosterRepository

_COLUMNS = """
    roster_id, store_id, date, shift_id, shift_type, created_by, updated_by,
    status, published_at, published_by
"""


def _to_roster(r: dict) -> Roster:
    return Roster(
        roster_id=r["roster_id"],
        store_id=r["store_id"],
        date=r["date"],
        shift_id=r.get("shift_id"),
        shift_type=r.get("shift_type"),
        created_by=r.get("created_by"),
        updated_by=r.get("updated_by"),
        status=RosterStatus(r.get("status") or RosterStatus.DRAFT.value),
        published_at=r.get("published_at"),
        published_by=r.get("published_by"),
    )


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, roster_id: str) -> Optional[Roster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM rosters WHERE roster_id=%s", (roster_id,))
            r = fetchone(cur)
            return _to_roster(r) if r else None

    def find_for_shift(self, *, store_id: str, roster_date: date, shift_type: Optional[str]) -> Optional[Roster]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM rosters
                WHERE store_id=%s AND date=%s AND shift_type <=> %s
                ORDER BY created_at
                LIMIT 1
                """,
                (store_id, roster_date, shift_type),
            )
            r = fetchone(cur)
            return _to_roster(r) if r else None

    def list_for_store(
        self, *, store_id: str, roster_date: Optional[date] = None, shift_type: Optional[str] = None
    ) -> Sequence[Roster]:
        clauses = ["store_id=%s"]
        params: list[object] = [store_id]
        if roster_date:
            clauses.append("date=%s")
            params.append(roster_date)
        if shift_type:
            clauses.append("shift_type=%s")
            params.append(shift_type)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM rosters WHERE {' AND '.join(clauses)} ORDER BY date DESC, shift_type",
                tuple(params),
            )
            return [_to_roster(r) for r in fetchall(cur)]

    def create(self, roster: Roster) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO rosters(roster_id, store_id, date, shift_id, shift_type, created_by, updated_by, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    roster.roster_id,
                    roster.store_id,
                    roster.date,
                    roster.shift_id,
                    roster.shift_type,
                    roster.created_by,
                    roster.updated_by,
                    roster.status.value,
                ),
            )
        return roster.roster_id

    def touch(self, roster_id: str, *, updated_by: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE rosters SET updated_by=%s WHERE roster_id=%s", (updated_by, roster_id))

    def mark_published(self, roster_id: str, *, published_at: datetime, published_by: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE rosters
                SET status=%s, published_at=%s, published_by=%s, updated_by=%s
                WHERE roster_id=%s AND status=%s
                """,
                (
                    RosterStatus.PUBLISHED.value,
                    published_at,
                    published_by,
                    published_by,
                    roster_id,
                    RosterStatus.DRAFT.value,
                ),
            )
            return cur.rowcount > 0

    def list_ids_touched_by(self, *, store_id: str, user_ids: Sequence[str]) -> Sequence[str]:
        if not user_ids:
            return []
        marks, params = in_clause(user_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT roster_id
                FROM rosters
                WHERE store_id=%s AND (created_by IN ({marks}) OR updated_by IN ({marks}))
                """,
                (store_id, *params, *params),
            )
            return [r["roster_id"] for r in fetchall(cur)]

    def delete_many(self, roster_ids: Iterable[str]) -> int:
        marks, params = in_clause(roster_ids)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM rosters WHERE roster_id IN ({marks})", params)
            return int(cur.rowcount or 0)
