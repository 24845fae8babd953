from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List

import mysql.connector

from ..core.enums import SystemRole
from ..roles.defaults import SYSTEM_ROLE_DESCRIPTIONS, default_permissions
from .connection import DBConfig


def _connect(target: DBConfig, *, with_database: bool = True):
    params = dict(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        connection_timeout=target.connect_timeout,
        use_pure=True,
    )
    if with_database:
        params["database"] = target.database
    return mysql.connector.connect(**params)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: List[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)

    sql = _strip_line_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_system_roles(db_config: dict) -> List[str]:
    """Insert the system roles and their default matrices if missing.

    Existing permission rows are left alone so tuned grants survive a reseed.
    """
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor(dictionary=True)
        seeded: List[str] = []
        for role in SystemRole:
            cur.execute(
                """
                INSERT INTO roles(name, description, is_system, is_active)
                VALUES(%s,%s,1,1)
                ON DUPLICATE KEY UPDATE is_system=1
                """,
                (role.value, SYSTEM_ROLE_DESCRIPTIONS[role]),
            )
            cur.execute("SELECT id FROM roles WHERE name=%s", (role.value,))
            role_id = int(cur.fetchone()["id"])

            for module, caps in default_permissions(role).items():
                cur.execute(
                    """
                    INSERT IGNORE INTO role_permissions(role_id, module, can_view, can_add, can_edit, can_delete)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (role_id, module.value, int(caps.view), int(caps.add), int(caps.edit), int(caps.delete)),
                )
            seeded.append(role.value)

        conn.commit()
        return seeded
    finally:
        conn.close()


def list_tables(db_config: dict) -> List[str]:
    conn = _connect(DBConfig.from_dict(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
