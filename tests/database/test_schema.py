from __future__ import annotations

import re
from pathlib import Path

from src.academy_access.academy_access.database.bootstrap import (
    _iter_sql_statements,
    _strip_create_db_and_use,
    _strip_line_comments,
)

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def _create_table(name: str) -> str:
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8")))
    for stmt in _iter_sql_statements(sql):
        if re.match(rf"CREATE TABLE IF NOT EXISTS {name}\s*\(", stmt):
            return stmt
    raise AssertionError(f"no CREATE TABLE for {name}")


def test_schema_splits_without_database_statements():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8")))
    statements = list(_iter_sql_statements(sql))

    assert statements
    assert all(stmt.startswith("CREATE TABLE") for stmt in statements)


def test_role_name_unique_key_is_case_sensitive():
    # "Admin" and "admin" are different roles, so the unique key must compare bytes.
    roles = _create_table("roles")

    assert re.search(r"\bname VARCHAR\(\d+\) COLLATE utf8mb4_bin NOT NULL", roles)
    assert "UNIQUE KEY uq_roles_name (name)" in roles
