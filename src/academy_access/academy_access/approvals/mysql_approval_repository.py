from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..core.constants import EXTENSION_DAYS_PER_SESSION
from ..core.enums import RequestKind, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import (
    ApprovalRequest,
    ChangeDetails,
    DecisionOutcome,
    ExtensionDetails,
    LeaveDetails,
    RequestDetails,
)
from .repository import ApprovalRepository

_COMMON_COLUMNS = "id, requested_by, status, reason, approver_id, approved_at, rejection_reason, created_at"


def _leave_values(d: LeaveDetails) -> Tuple[object, ...]:
    return (d.start_date, d.end_date)


def _leave_from_row(r: dict) -> LeaveDetails:
    return LeaveDetails(start_date=r["start_date"], end_date=r["end_date"], batch_id=r.get("batch_id"))


@dataclass(frozen=True)
class _KindTable:
    """How one request kind is laid out in its own table."""

    table: str
    subject_column: str
    detail_columns: Tuple[str, ...]
    to_values: Callable[[RequestDetails], Tuple[object, ...]]
    from_row: Callable[[dict], RequestDetails]


_TABLES: Dict[RequestKind, _KindTable] = {
    RequestKind.STUDENT_LEAVE: _KindTable(
        table="student_leaves",
        subject_column="student_id",
        detail_columns=("start_date", "end_date", "batch_id"),
        to_values=lambda d: (d.start_date, d.end_date, d.batch_id),
        from_row=_leave_from_row,
    ),
    RequestKind.FACULTY_LEAVE: _KindTable(
        table="faculty_leaves",
        subject_column="faculty_id",
        detail_columns=("start_date", "end_date"),
        to_values=_leave_values,
        from_row=_leave_from_row,
    ),
    RequestKind.EMPLOYEE_LEAVE: _KindTable(
        table="employee_leaves",
        subject_column="employee_id",
        detail_columns=("start_date", "end_date"),
        to_values=_leave_values,
        from_row=_leave_from_row,
    ),
    RequestKind.BATCH_EXTENSION: _KindTable(
        table="batch_extensions",
        subject_column="batch_id",
        detail_columns=("number_of_sessions",),
        to_values=lambda d: (int(d.number_of_sessions),),
        from_row=lambda r: ExtensionDetails(number_of_sessions=int(r["number_of_sessions"])),
    ),
    RequestKind.CHANGE_REQUEST: _KindTable(
        table="change_requests",
        subject_column="entity_id",
        detail_columns=("entity_type",),
        to_values=lambda d: (d.entity_type,),
        from_row=lambda r: ChangeDetails(entity_type=r["entity_type"]),
    ),
}


def _select_sql(layout: _KindTable) -> str:
    columns = ", ".join((_COMMON_COLUMNS, f"{layout.subject_column} AS subject_id") + layout.detail_columns)
    return f"SELECT {columns} FROM {layout.table}"


def _row_to_request(kind: RequestKind, layout: _KindTable, r: dict) -> ApprovalRequest:
    return ApprovalRequest(
        request_id=int(r["id"]),
        kind=kind,
        subject_id=int(r["subject_id"]),
        requester_id=int(r["requested_by"]),
        status=RequestStatus(r["status"]),
        details=layout.from_row(r),
        created_at=r["created_at"],
        reason=r.get("reason"),
        approver_id=r.get("approver_id"),
        approved_at=r.get("approved_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLApprovalRepository(ApprovalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        kind: RequestKind,
        subject_id: int,
        requester_id: int,
        details: RequestDetails,
        reason: Optional[str],
    ) -> int:
        layout = _TABLES[kind]
        columns = (layout.subject_column, "requested_by", "status", "reason") + layout.detail_columns
        placeholders = ",".join(["%s"] * len(columns))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {layout.table}({', '.join(columns)}) VALUES({placeholders})",
                (int(subject_id), int(requester_id), RequestStatus.PENDING.value, reason) + layout.to_values(details),
            )
            return int(cur.lastrowid)

    def get(self, *, kind: RequestKind, request_id: int) -> Optional[ApprovalRequest]:
        layout = _TABLES[kind]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_select_sql(layout)} WHERE id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(kind, layout, r) if r else None

    def list(
        self,
        *,
        kind: RequestKind,
        subject_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        involving_user_id: Optional[int] = None,
        limit: int = 500,
    ) -> Sequence[ApprovalRequest]:
        layout = _TABLES[kind]
        clauses = ["1=1"]
        params: list = []

        if subject_id is not None:
            clauses.append(f"{layout.subject_column}=%s")
            params.append(int(subject_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if involving_user_id is not None:
            if kind.is_self_service:
                clauses.append(f"(requested_by=%s OR {layout.subject_column}=%s)")
                params.extend([int(involving_user_id), int(involving_user_id)])
            else:
                clauses.append("requested_by=%s")
                params.append(int(involving_user_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_select_sql(layout)}
                WHERE {where}
                ORDER BY created_at ASC, id ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(kind, layout, r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        kind: RequestKind,
        request_id: int,
        status: RequestStatus,
        approver_id: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> DecisionOutcome:
        layout = _TABLES[kind]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE {layout.table}
                SET status=%s, approver_id=%s, approved_at=%s, rejection_reason=%s
                WHERE id=%s AND status=%s
                """,
                (
                    status.value,
                    int(approver_id),
                    decided_at,
                    rejection_reason,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            if cur.rowcount == 0:
                return DecisionOutcome(decided=False)

            if status is not RequestStatus.APPROVED or kind is not RequestKind.BATCH_EXTENSION:
                return DecisionOutcome(decided=True, effect_applied=True)

            # The extension row is locked by the UPDATE above.
            cur.execute(
                f"""
                UPDATE batches b
                JOIN {layout.table} x ON x.{layout.subject_column} = b.id
                SET b.end_date = DATE_ADD(b.end_date, INTERVAL x.number_of_sessions * %s DAY)
                WHERE x.id=%s
                """,
                (EXTENSION_DAYS_PER_SESSION, int(request_id)),
            )
            return DecisionOutcome(decided=True, effect_applied=cur.rowcount > 0)
