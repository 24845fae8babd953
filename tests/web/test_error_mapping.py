from __future__ import annotations

from types import SimpleNamespace

import pytest
from flask import Flask

from src.academy_access.academy_access.approvals.controller import register as register_approvals
from src.academy_access.academy_access.common.http import register_error_handlers
from src.academy_access.academy_access.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from src.academy_access.academy_access.roles.controller import register as register_roles
from src.academy_access.academy_access.serials.controller import register as register_serials


class RaisingRoleService:
    """Each call raises whatever the test queued up."""

    def __init__(self):
        self.error = None
        self.calls = []

    def list_roles(self, *, actor):
        self.calls.append(actor)
        if self.error:
            raise self.error
        return []


@pytest.fixture()
def roles():
    return RaisingRoleService()


@pytest.fixture()
def client(roles):
    app = Flask(__name__)
    app.secret_key = "test-secret"
    app.config["TESTING"] = True
    container = SimpleNamespace(
        role_service=roles,
        approval_service=SimpleNamespace(),
        authorization_service=SimpleNamespace(),
        serial_allocator=SimpleNamespace(),
    )
    register_error_handlers(app)
    register_roles(app, container)
    register_approvals(app, container)
    register_serials(app, container)
    return app.test_client()


def _login(client, user_id=7, roles=("admin",)):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["roles"] = list(roles)


def test_missing_principal_is_401(client, roles):
    resp = client.get("/api/roles")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False
    assert roles.calls == []


def test_success_envelope_and_principal_from_session(client, roles):
    _login(client, user_id=7, roles=("Admin",))
    resp = client.get("/api/roles")

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "data": []}
    assert roles.calls[0].user_id == 7
    assert roles.calls[0].roles == frozenset({"admin"})


def test_single_role_string_in_session_is_one_role(client, roles):
    with client.session_transaction() as sess:
        sess["user_id"] = 3
        sess["roles"] = "superadmin"

    resp = client.get("/api/roles")

    assert resp.status_code == 200
    assert roles.calls[0].roles == frozenset({"superadmin"})
    assert roles.calls[0].is_superadmin


@pytest.mark.parametrize(
    "error,status",
    [
        (ValidationError("bad"), 400),
        (ForbiddenError("no"), 403),
        (NotFoundError("gone"), 404),
        (ConflictError("twice"), 409),
        (UnavailableError("down"), 503),
    ],
)
def test_domain_errors_map_to_status_codes(client, roles, error, status):
    _login(client)
    roles.error = error

    resp = client.get("/api/roles")

    assert resp.status_code == status
    assert resp.get_json() == {"success": False, "message": str(error)}


def test_unknown_route_stays_404(client):
    _login(client)
    assert client.get("/api/nothing-here").status_code == 404
