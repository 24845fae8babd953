from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..authorization.model import Principal
from ..core.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UnavailableError, 503),
)


class Unauthenticated(Exception):
    pass


def current_principal() -> Principal:
    """The actor attached to the Flask session by upstream login."""
    if "user_id" not in session:
        raise Unauthenticated()
    return Principal.of(session["user_id"], session.get("roles"))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        return view(*args, **kwargs)

    return wrapper


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def ok(data: Any = None, status: int = 200, message: Optional[str] = None):
    payload: Dict[str, Any] = {"success": True, "data": data}
    if message:
        payload["message"] = message
    return jsonify(payload), status


def status_code_for(exc: DomainError) -> int:
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return jsonify({"success": False, "message": str(exc)}), status_code_for(exc)

    @app.errorhandler(Unauthenticated)
    def handle_unauthenticated(exc: Unauthenticated):
        return jsonify({"success": False, "message": "Authentication required"}), 401

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
