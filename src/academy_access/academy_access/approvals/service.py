from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

from ..authorization.model import Principal
from ..authorization.service import AuthorizationService
from ..common.datetime_utils import now_local
from ..common.validators import optional_text, require_positive_int
from ..core.constants import DEFAULT_LIST_LIMIT, EXTENSION_ADMIN_SESSION_LIMIT
from ..core.enums import Capability, Decision, RequestKind, RequestStatus, parse_enum
from ..core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from .model import (
    DETAILS_BY_KIND,
    ApprovalRequest,
    ChangeDetails,
    RequestDetails,
    SubjectRef,
    details_from_mapping,
)
from .repository import ApprovalRepository, SubjectRepository

logger = logging.getLogger(__name__)

_KIND_ORDER = {kind: i for i, kind in enumerate(RequestKind)}


class ApprovalService:
    """Use case: file and decide approval requests of every kind.

    A request is created PENDING and moves exactly once to APPROVED or
    REJECTED. The final write is conditional on the row still being pending,
    so concurrent deciders race on the database and only one wins.
    """

    def __init__(self, approvals: ApprovalRepository, subjects: SubjectRepository, authz: AuthorizationService):
        self._approvals = approvals
        self._subjects = subjects
        self._authz = authz

    def _get_or_raise(self, kind: RequestKind, request_id: int) -> ApprovalRequest:
        req = self._approvals.get(kind=kind, request_id=require_positive_int(request_id, "Request ID"))
        if not req:
            raise NotFoundError("Request not found")
        return req

    @staticmethod
    def _is_involved(actor: Principal, req: ApprovalRequest) -> bool:
        if req.requester_id == actor.user_id:
            return True
        return req.kind.is_self_service and req.subject_id == actor.user_id

    # -------- Create --------
    def create(
        self,
        *,
        actor: Principal,
        kind: Union[RequestKind, str],
        subject_id: int,
        details: Union[RequestDetails, Mapping[str, Any]],
        reason: Optional[str] = None,
    ) -> ApprovalRequest:
        kind = parse_enum(RequestKind, kind, "request kind")
        subject_id = require_positive_int(subject_id, "Subject ID")

        if isinstance(details, Mapping):
            details = details_from_mapping(kind, details)
        if not isinstance(details, DETAILS_BY_KIND[kind]):
            raise ValidationError(f"Details do not match request kind '{kind.value}'")
        details = details.validate(kind)

        filing_for_self = kind.is_self_service and subject_id == actor.user_id
        if not filing_for_self:
            self._authz.require(actor, kind.module, Capability.ADD)

        entity_type = details.entity_type if isinstance(details, ChangeDetails) else None
        if not self._subjects.exists(SubjectRef(kind, subject_id), entity_type=entity_type):
            raise NotFoundError("Subject not found")
        if kind is RequestKind.STUDENT_LEAVE and not self._subjects.batch_exists(details.batch_id):
            raise NotFoundError("Batch not found")

        request_id = self._approvals.create(
            kind=kind,
            subject_id=subject_id,
            requester_id=actor.user_id,
            details=details,
            reason=optional_text(reason),
        )
        logger.info("%s request %s created by user %s for subject %s", kind.value, request_id, actor.user_id, subject_id)
        return self._get_or_raise(kind, request_id)

    # -------- Decide --------
    def decide(
        self,
        *,
        actor: Principal,
        kind: Union[RequestKind, str],
        request_id: int,
        decision: Union[Decision, str],
        rejection_reason: Optional[str] = None,
    ) -> None:
        kind = parse_enum(RequestKind, kind, "request kind")
        decision = parse_enum(Decision, decision, "decision")
        rejection_reason = optional_text(rejection_reason)

        if decision is Decision.REJECT and not rejection_reason:
            raise ValidationError("Rejection reason is required")

        req = self._get_or_raise(kind, request_id)
        if not req.is_pending:
            raise ConflictError(f"Request is already {req.status.value}")
        if self._is_involved(actor, req):
            raise ForbiddenError("You cannot decide your own request")

        self._authz.require(actor, kind.module, Capability.EDIT)

        if (
            decision is Decision.APPROVE
            and kind is RequestKind.BATCH_EXTENSION
            and req.details.number_of_sessions > EXTENSION_ADMIN_SESSION_LIMIT
            and not actor.is_superadmin
        ):
            raise ForbiddenError(
                f"Extensions over {EXTENSION_ADMIN_SESSION_LIMIT} sessions can only be approved by a superadmin"
            )

        outcome = self._approvals.decide(
            kind=kind,
            request_id=req.request_id,
            status=decision.resulting_status,
            approver_id=actor.user_id,
            decided_at=now_local(),
            rejection_reason=rejection_reason if decision is Decision.REJECT else None,
        )
        if not outcome.decided:
            raise ConflictError("Request has already been decided")

        if decision is Decision.APPROVE and not outcome.effect_applied:
            logger.warning(
                "%s request %s approved but subject %s no longer exists; nothing applied",
                kind.value,
                req.request_id,
                req.subject_id,
            )
        logger.info(
            "%s request %s %s by user %s",
            kind.value,
            req.request_id,
            decision.resulting_status.value,
            actor.user_id,
        )

    # -------- Read --------
    def get(self, *, actor: Principal, kind: Union[RequestKind, str], request_id: int) -> ApprovalRequest:
        kind = parse_enum(RequestKind, kind, "request kind")
        req = self._get_or_raise(kind, request_id)
        if not self._is_involved(actor, req):
            self._authz.require(actor, kind.module, Capability.VIEW)
        return req

    def list(
        self,
        *,
        actor: Principal,
        kind: Union[RequestKind, str, None] = None,
        subject_id: Optional[int] = None,
        status: Union[RequestStatus, str, None] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> List[ApprovalRequest]:
        kinds = list(RequestKind) if kind is None else [parse_enum(RequestKind, kind, "request kind")]
        status = None if status is None else parse_enum(RequestStatus, status, "status")
        subject_id = None if subject_id is None else require_positive_int(subject_id, "Subject ID")

        out: List[ApprovalRequest] = []
        for k in kinds:
            can_view_all = self._authz.is_allowed(actor, k.module, Capability.VIEW)
            out.extend(
                self._approvals.list(
                    kind=k,
                    subject_id=subject_id,
                    status=status,
                    involving_user_id=None if can_view_all else actor.user_id,
                    limit=limit,
                )
            )

        out.sort(key=lambda r: (r.created_at, _KIND_ORDER[r.kind], r.request_id))
        return out[:limit]
