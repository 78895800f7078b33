from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import RoleRecord
from .repository import RoleRepository


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[RoleRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role_id, name, description FROM roles ORDER BY name")
            return [
                RoleRecord(role_id=r["role_id"], name=r["name"], description=r.get("description"))
                for r in fetchall(cur)
            ]
