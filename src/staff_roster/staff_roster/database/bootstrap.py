from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.security import generate_password_hash

from ..core.enums import RoleName
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DEFAULT_ROLE_DESCRIPTIONS = {
    RoleName.STORE_MANAGER: "Full administrative access to all features",
    RoleName.SHIFT_IN_CHARGE: "Elevated user with staff management and roster creation capabilities",
    RoleName.INVENTORY_EXECUTIVE: "Manages inventory and stock-related tasks",
    RoleName.DISPATCHER: "Handles order dispatch",
    RoleName.PICKER_PACKER_WAREHOUSE: "Warehouse picker packer",
    RoleName.PICKER_PACKER_AD_HOC: "Ad-hoc picker packer",
}


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    quote: Optional[str] = None
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
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_default_roles(db_config: dict) -> dict[str, str]:
    """Insert any missing built-in role. Returns ``{role name: role_id}``."""

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT role_id, name FROM roles")
        existing = {r["name"]: r["role_id"] for r in cur.fetchall()}

        for role, description in DEFAULT_ROLE_DESCRIPTIONS.items():
            if role.value in existing:
                continue
            role_id = str(uuid.uuid4())
            cur.execute(
                "INSERT INTO roles (role_id, name, description) VALUES (%s, %s, %s)",
                (role_id, role.value, description),
            )
            existing[role.value] = role_id
            logger.info("Created role %s", role.value)

        conn.commit()
        return existing
    finally:
        conn.close()


def ensure_store_manager(db_config: dict, *, email: str, password: str, store_id: str, employee_id: str = "SM-001") -> str:
    """Create the first Store Manager login if the email is not registered yet."""

    role_ids = ensure_default_roles(db_config)
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("SELECT identity_id FROM auth_identities WHERE email=%s", (email.lower(),))
        row = cur.fetchone()
        if row:
            return row["identity_id"]

        user_id = str(uuid.uuid4())
        cur.execute(
            "INSERT INTO auth_identities (identity_id, email, password_hash) VALUES (%s, %s, %s)",
            (user_id, email.lower(), generate_password_hash(password)),
        )
        cur.execute(
            """
            INSERT INTO users (user_id, employee_id, first_name, last_name, store_id, role_id, created_by)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (user_id, employee_id, "Store", "Manager", store_id, role_ids[RoleName.STORE_MANAGER.value], user_id),
        )
        conn.commit()
        logger.info("Created store manager %s for store=%s", email, store_id)
        return user_id
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
