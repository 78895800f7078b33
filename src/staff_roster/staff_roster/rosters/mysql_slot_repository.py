from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_hhmm
from .model import RosterSlot
from .repository import RosterSlotRepository

_COLUMNS = """
    slot_id, roster_id, user_id, start_time, end_time,
    actual_user_id, actual_start_time, actual_end_time, attendance_status,
    substitution_reason, actual_notes, checked_in_at, checked_out_at,
    checked_in_by, checked_out_by
"""


def _to_slot(r: dict) -> RosterSlot:
    return RosterSlot(
        slot_id=r["slot_id"],
        roster_id=r["roster_id"],
        user_id=r.get("user_id"),
        start_time=normalize_hhmm(r["start_time"]),
        end_time=normalize_hhmm(r["end_time"]),
        actual_user_id=r.get("actual_user_id"),
        actual_start_time=normalize_hhmm(r.get("actual_start_time")),
        actual_end_time=normalize_hhmm(r.get("actual_end_time")),
        attendance_status=AttendanceStatus(r.get("attendance_status") or AttendanceStatus.PRESENT.value),
        substitution_reason=r.get("substitution_reason"),
        checked_in_at=r.get("checked_in_at"),
        checked_out_at=r.get("checked_out_at"),
        checked_in_by=r.get("checked_in_by"),
        checked_out_by=r.get("checked_out_by"),
        notes=r.get("actual_notes"),
    )


class MySQLRosterSlotRepository(RosterSlotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_roster(self, roster_id: str) -> Sequence[RosterSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM roster_slots WHERE roster_id=%s ORDER BY start_time, slot_id",
                (roster_id,),
            )
            return [_to_slot(r) for r in fetchall(cur)]

    def find_for_user(self, *, roster_id: str, user_id: str, slot_id: Optional[str] = None) -> Sequence[RosterSlot]:
        clauses = ["roster_id=%s", "user_id=%s"]
        params: list[object] = [roster_id, user_id]
        if slot_id:
            clauses.append("slot_id=%s")
            params.append(slot_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM roster_slots WHERE {' AND '.join(clauses)} ORDER BY start_time, slot_id",
                tuple(params),
            )
            return [_to_slot(r) for r in fetchall(cur)]

    def get(self, *, roster_id: str, slot_id: str) -> Optional[RosterSlot]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM roster_slots WHERE roster_id=%s AND slot_id=%s",
                (roster_id, slot_id),
            )
            r = fetchone(cur)
            return _to_slot(r) if r else None

    def insert_many(self, slots: Sequence[RosterSlot]) -> int:
        if not slots:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO roster_slots(slot_id, roster_id, user_id, start_time, end_time, actual_notes)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                [(s.slot_id, s.roster_id, s.user_id, s.start_time, s.end_time, s.notes) for s in slots],
            )
        return len(slots)

    def mark_checked_in(
        self,
        *,
        slot_id: str,
        actual_start_time: str,
        attendance_status: AttendanceStatus,
        checked_in_at: datetime,
        checked_in_by: str,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE roster_slots
                SET actual_start_time=%s, attendance_status=%s, checked_in_at=%s,
                    checked_in_by=%s, actual_user_id=%s, actual_notes=COALESCE(%s, actual_notes)
                WHERE slot_id=%s AND checked_in_at IS NULL
                """,
                (
                    actual_start_time,
                    attendance_status.value,
                    checked_in_at,
                    checked_in_by,
                    checked_in_by,
                    notes,
                    slot_id,
                ),
            )
            return cur.rowcount > 0

    def mark_checked_out(
        self,
        *,
        slot_id: str,
        actual_end_time: str,
        checked_out_at: datetime,
        checked_out_by: str,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE roster_slots
                SET actual_end_time=%s, checked_out_at=%s, checked_out_by=%s,
                    actual_notes=COALESCE(%s, actual_notes)
                WHERE slot_id=%s AND checked_in_at IS NOT NULL AND checked_out_at IS NULL
                """,
                (actual_end_time, checked_out_at, checked_out_by, notes, slot_id),
            )
            return cur.rowcount > 0

    def save_actuals(self, slot: RosterSlot, *, expected: RosterSlot) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE roster_slots
                SET actual_user_id=%s, actual_start_time=%s, actual_end_time=%s,
                    attendance_status=%s, substitution_reason=%s, actual_notes=%s,
                    checked_in_at=%s, checked_in_by=%s, checked_out_at=%s, checked_out_by=%s
                WHERE slot_id=%s AND checked_in_at <=> %s AND checked_out_at <=> %s
                """,
                (
                    slot.actual_user_id,
                    slot.actual_start_time,
                    slot.actual_end_time,
                    slot.attendance_status.value,
                    slot.substitution_reason,
                    slot.notes,
                    slot.checked_in_at,
                    slot.checked_in_by,
                    slot.checked_out_at,
                    slot.checked_out_by,
                    slot.slot_id,
                    expected.checked_in_at,
                    expected.checked_out_at,
                ),
            )
            return cur.rowcount > 0

    def _delete_where_in(self, column: str, values: Iterable[str]) -> int:
        marks, params = in_clause(values)
        if not params:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM roster_slots WHERE {column} IN ({marks})", params)
            return int(cur.rowcount or 0)

    def delete_for_rosters(self, roster_ids: Iterable[str]) -> int:
        return self._delete_where_in("roster_id", roster_ids)

    def delete_for_users(self, user_ids: Iterable[str]) -> int:
        return self._delete_where_in("user_id", user_ids)

    def delete_for_actual_users(self, user_ids: Iterable[str]) -> int:
        return self._delete_where_in("actual_user_id", user_ids)
