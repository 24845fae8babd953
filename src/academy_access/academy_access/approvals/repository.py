from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestKind, RequestStatus
from .model import ApprovalRequest, DecisionOutcome, RequestDetails, SubjectRef


class ApprovalRepository(Protocol):
    """Persistence for approval requests of every kind.

    One table per kind, one shared transition contract.
    """

    def create(
        self,
        *,
        kind: RequestKind,
        subject_id: int,
        requester_id: int,
        details: RequestDetails,
        reason: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, *, kind: RequestKind, request_id: int) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def list(
        self,
        *,
        kind: RequestKind,
        subject_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        involving_user_id: Optional[int] = None,
        limit: int = 500,
    ) -> Sequence[ApprovalRequest]:
        """Oldest first. ``involving_user_id`` keeps rows the user requested or is the subject of."""

        raise NotImplementedError

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
        """Move a PENDING row to ``status`` and, on approval, apply its subject effect.

        Both happen in one transaction, guarded by ``status='pending'`` so
        only one concurrent caller can succeed.
        """

        raise NotImplementedError


class SubjectRepository(Protocol):
    """Read-only existence checks against entities owned elsewhere."""

    def exists(self, subject: SubjectRef, *, entity_type: Optional[str] = None) -> bool:
        """``entity_type`` names the target table for change requests."""

        raise NotImplementedError

    def batch_exists(self, batch_id: int) -> bool:
        raise NotImplementedError
