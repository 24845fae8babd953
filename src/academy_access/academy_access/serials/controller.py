from __future__ import annotations

from flask import Flask

from ..common.http import current_principal, login_required, ok
from ..container import Container
from ..core.enums import Capability, Module


def register(app: Flask, container: Container) -> None:
    @app.route("/api/serials/next", methods=["GET"], endpoint="next_serial")
    @login_required
    def next_serial():
        container.authorization_service.require(current_principal(), Module.STUDENTS, Capability.ADD)
        return ok({"serial_no": container.serial_allocator.next_serial()})
