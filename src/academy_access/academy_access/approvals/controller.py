from __future__ import annotations

from flask import Flask, request

from ..common.http import current_principal, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    approvals = container.approval_service

    def _list(kind=None):
        items = approvals.list(
            actor=current_principal(),
            kind=kind,
            subject_id=request.args.get("subject_id") or None,
            status=request.args.get("status") or None,
        )
        return ok([r.as_dict() for r in items])

    @app.route("/api/approvals", methods=["GET"], endpoint="list_all_approvals")
    @login_required
    def list_all_approvals():
        return _list()

    @app.route("/api/approvals/<kind>", methods=["GET"], endpoint="list_approvals")
    @login_required
    def list_approvals(kind: str):
        return _list(kind)

    @app.route("/api/approvals/<kind>", methods=["POST"], endpoint="create_approval")
    @login_required
    def create_approval(kind: str):
        body = json_body()
        req = approvals.create(
            actor=current_principal(),
            kind=kind,
            subject_id=body.get("subject_id"),
            details=body.get("details") or {},
            reason=body.get("reason"),
        )
        return ok(req.as_dict(), 201, "Request submitted")

    @app.route("/api/approvals/<kind>/<int:request_id>", methods=["GET"], endpoint="get_approval")
    @login_required
    def get_approval(kind: str, request_id: int):
        return ok(approvals.get(actor=current_principal(), kind=kind, request_id=request_id).as_dict())

    @app.route("/api/approvals/<kind>/<int:request_id>/decide", methods=["POST"], endpoint="decide_approval")
    @login_required
    def decide_approval(kind: str, request_id: int):
        body = json_body()
        approvals.decide(
            actor=current_principal(),
            kind=kind,
            request_id=request_id,
            decision=body.get("decision"),
            rejection_reason=body.get("rejection_reason"),
        )
        return ok({"id": request_id, "decision": body.get("decision")}, message="Request decided")
