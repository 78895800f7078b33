from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import AuditLogEntry
from .repository import AuditLogRepository


def _to_entry(r: dict) -> AuditLogEntry:
    return AuditLogEntry(
        log_id=r["log_id"],
        store_id=r["store_id"],
        user_id=r["user_id"],
        action=r["action"],
        entity_type=r["entity_type"],
        entity_id=r["entity_id"],
        entity_name=r.get("entity_name"),
        changes=load_json(r.get("changes")),
        metadata=load_json(r.get("metadata")),
        timestamp=r["timestamp"],
    )


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(self, entry: AuditLogEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(
                    log_id, store_id, user_id, action, entity_type, entity_id,
                    entity_name, changes, metadata, timestamp
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    entry.log_id,
                    entry.store_id,
                    entry.user_id,
                    entry.action,
                    entry.entity_type,
                    entry.entity_id,
                    entry.entity_name,
                    dump_json(entry.changes),
                    dump_json(entry.metadata),
                    entry.timestamp,
                ),
            )

    def entity_ids_with_name_suffix(self, *, store_id: str, entity_type: str, suffix: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT entity_id
                FROM audit_logs
                WHERE store_id=%s AND entity_type=%s AND entity_name LIKE %s
                """,
                (store_id, entity_type, f"%{suffix}"),
            )
            return [r["entity_id"] for r in fetchall(cur)]

    def delete_since(self, *, store_id: str, since: datetime, keep_actions: Iterable[str]) -> int:
        marks, params = in_clause(keep_actions)
        keep_filter = f" AND action NOT IN ({marks})" if params else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM audit_logs WHERE store_id=%s AND timestamp >= %s{keep_filter}",
                (store_id, since, *params),
            )
            return int(cur.rowcount or 0)

    def list_for_store(
        self,
        *,
        store_id: str,
        offset: int,
        limit: int,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> tuple[Sequence[AuditLogEntry], int]:
        clauses = ["store_id=%s"]
        params: list[object] = [store_id]
        if action:
            clauses.append("action LIKE %s")
            params.append(f"%{action}%")
        if entity_type:
            clauses.append("entity_type=%s")
            params.append(entity_type)
        if user_id:
            clauses.append("user_id=%s")
            params.append(user_id)
        if since:
            clauses.append("timestamp >= %s")
            params.append(since)
        if until:
            clauses.append("timestamp <= %s")
            params.append(until)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM audit_logs WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)
            cur.execute(
                f"""
                SELECT log_id, store_id, user_id, action, entity_type, entity_id,
                       entity_name, changes, metadata, timestamp
                FROM audit_logs
                WHERE {where}
                ORDER BY timestamp DESC
                LIMIT %s OFFSET %s
                """,
                (*params, limit, offset),
            )
            return [_to_entry(r) for r in fetchall(cur)], total
