from __future__ import annotations

from typing import Optional

from ..core.enums import RequestKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SubjectRef
from .repository import SubjectRepository

# Leaves are filed about a person, extensions about a batch.
_KIND_TABLES = {
    RequestKind.STUDENT_LEAVE: "users",
    RequestKind.FACULTY_LEAVE: "users",
    RequestKind.EMPLOYEE_LEAVE: "users",
    RequestKind.BATCH_EXTENSION: "batches",
}

_ENTITY_TABLES = {
    "user": "users",
    "student": "users",
    "faculty": "users",
    "employee": "users",
    "batch": "batches",
    "payment": "payment_transactions",
    "session": "sessions",
}


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def exists(self, subject: SubjectRef, *, entity_type: Optional[str] = None) -> bool:
        if subject.kind is RequestKind.CHANGE_REQUEST:
            table = _ENTITY_TABLES.get((entity_type or "").strip().lower())
        else:
            table = _KIND_TABLES.get(subject.kind)
        if table is None:
            return False

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT 1 AS ok FROM {table} WHERE id=%s LIMIT 1", (int(subject.subject_id),))
            return fetchone(cur) is not None

    def batch_exists(self, batch_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS ok FROM batches WHERE id=%s LIMIT 1", (int(batch_id),))
            return fetchone(cur) is not None
