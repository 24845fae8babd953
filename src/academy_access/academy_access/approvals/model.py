from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_empty, require_positive_int
from ..core.enums import RequestKind, RequestStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class LeaveDetails:
    """Student, faculty and employee leaves. ``batch_id`` applies to students."""

    start_date: date
    end_date: date
    batch_id: Optional[int] = None

    def validate(self, kind: RequestKind) -> "LeaveDetails":
        if self.end_date < self.start_date:
            raise ValidationError("Start date must be before or equal to end date")
        if kind is RequestKind.STUDENT_LEAVE:
            return LeaveDetails(self.start_date, self.end_date, require_positive_int(self.batch_id, "Batch ID"))
        return LeaveDetails(self.start_date, self.end_date, None)

    def as_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "batch_id": self.batch_id,
        }


@dataclass(frozen=True)
class ExtensionDetails:
    number_of_sessions: int

    def validate(self, kind: RequestKind) -> "ExtensionDetails":
        return ExtensionDetails(require_positive_int(self.number_of_sessions, "Number of sessions"))

    def as_dict(self) -> dict:
        return {"number_of_sessions": self.number_of_sessions}


@dataclass(frozen=True)
class ChangeDetails:
    """A generic change to some entity, e.g. ``entity_type='student'``."""

    entity_type: str

    def validate(self, kind: RequestKind) -> "ChangeDetails":
        return ChangeDetails(require_non_empty(self.entity_type, "Entity type"))

    def as_dict(self) -> dict:
        return {"entity_type": self.entity_type}


RequestDetails = Union[LeaveDetails, ExtensionDetails, ChangeDetails]

DETAILS_BY_KIND = {
    RequestKind.STUDENT_LEAVE: LeaveDetails,
    RequestKind.FACULTY_LEAVE: LeaveDetails,
    RequestKind.EMPLOYEE_LEAVE: LeaveDetails,
    RequestKind.BATCH_EXTENSION: ExtensionDetails,
    RequestKind.CHANGE_REQUEST: ChangeDetails,
}


def details_from_mapping(kind: RequestKind, data: Mapping[str, Any]) -> RequestDetails:
    """Build the details variant for ``kind`` from a JSON-ish mapping."""
    cls = DETAILS_BY_KIND[kind]
    if cls is LeaveDetails:
        return LeaveDetails(
            start_date=parse_iso_date(data.get("start_date")),
            end_date=parse_iso_date(data.get("end_date")),
            batch_id=data.get("batch_id"),
        )
    if cls is ExtensionDetails:
        return ExtensionDetails(number_of_sessions=require_positive_int(data.get("number_of_sessions"), "Number of sessions"))
    return ChangeDetails(entity_type=require_non_empty(data.get("entity_type"), "Entity type"))


@dataclass(frozen=True)
class SubjectRef:
    """The entity a request affects: a person for leaves, a batch for extensions."""

    kind: RequestKind
    subject_id: int


@dataclass(frozen=True)
class ApprovalRequest:
    request_id: int
    kind: RequestKind
    subject_id: int
    requester_id: int
    status: RequestStatus
    details: RequestDetails
    created_at: datetime
    reason: Optional[str] = None
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is RequestStatus.PENDING

    def as_dict(self) -> dict:
        return {
            "id": self.request_id,
            "kind": self.kind.value,
            "subject_id": self.subject_id,
            "requested_by": self.requester_id,
            "status": self.status.value,
            "reason": self.reason,
            "approver_id": self.approver_id,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "rejection_reason": self.rejection_reason,
            "created_at": self.created_at.isoformat(),
            "details": self.details.as_dict(),
        }


@dataclass(frozen=True)
class DecisionOutcome:
    """Result of the conditional status write.

    ``decided`` is False when the row was no longer pending at commit time.
    ``effect_applied`` is False when approving found no subject to update.
    """

    decided: bool
    effect_applied: bool = False
