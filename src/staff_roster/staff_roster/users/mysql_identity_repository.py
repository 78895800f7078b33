from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AuthIdentity
from .repository import AuthIdentityRepository


class MySQLAuthIdentityRepository(AuthIdentityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_email(self, email: str) -> Optional[AuthIdentity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT identity_id, email, password_hash FROM auth_identities WHERE email=%s",
                (email,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return AuthIdentity(
                identity_id=row["identity_id"],
                email=row["email"],
                password_hash=row["password_hash"],
            )

    def create(self, *, identity_id: str, email: str, password_hash: str) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO auth_identities(identity_id, email, password_hash) VALUES (%s, %s, %s)",
                (identity_id, email, password_hash),
            )
            return identity_id

    def delete(self, identity_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM auth_identities WHERE identity_id=%s", (identity_id,))
            return cur.rowcount > 0
