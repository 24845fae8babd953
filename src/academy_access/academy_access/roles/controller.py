from __future__ import annotations

from flask import Flask

from ..common.http import current_principal, json_body, login_required, ok
from ..container import Container
from ..core.enums import Capability, Module


def register(app: Flask, container: Container) -> None:
    roles = container.role_service

    # -------- Roles --------
    @app.route("/api/roles", methods=["GET"], endpoint="list_roles")
    @login_required
    def list_roles():
        data = [r.as_dict() for r in roles.list_roles(actor=current_principal())]
        return ok(data)

    @app.route("/api/roles", methods=["POST"], endpoint="create_role")
    @login_required
    def create_role():
        body = json_body()
        role = roles.create_role(
            actor=current_principal(),
            name=body.get("name"),
            description=body.get("description"),
            permissions=body.get("permissions"),
        )
        return ok(role.as_dict(), 201, "Role created")

    @app.route("/api/roles/<int:role_id>", methods=["GET"], endpoint="get_role")
    @login_required
    def get_role(role_id: int):
        return ok(roles.get_role(actor=current_principal(), role_id=role_id).as_dict())

    @app.route("/api/roles/<int:role_id>", methods=["PUT"], endpoint="update_role")
    @login_required
    def update_role(role_id: int):
        body = json_body()
        role = roles.update_role(
            actor=current_principal(),
            role_id=role_id,
            name=body.get("name"),
            description=body.get("description"),
            is_active=body.get("is_active"),
        )
        return ok(role.as_dict(), message="Role updated")

    @app.route("/api/roles/<int:role_id>", methods=["DELETE"], endpoint="delete_role")
    @login_required
    def delete_role(role_id: int):
        roles.delete_role(actor=current_principal(), role_id=role_id)
        return ok(message="Role deleted")

    @app.route("/api/roles/<int:role_id>/permissions/<module>", methods=["PUT"], endpoint="set_role_permission")
    @login_required
    def set_role_permission(role_id: int, module: str):
        roles.set_permission(actor=current_principal(), role_id=role_id, module=module, capabilities=json_body())
        return ok(message="Permission updated")

    # -------- Users --------
    @app.route("/api/users/<int:user_id>/roles", methods=["GET"], endpoint="list_user_roles")
    @login_required
    def list_user_roles(user_id: int):
        data = [r.as_dict() for r in roles.list_user_roles(actor=current_principal(), user_id=user_id)]
        return ok(data)

    @app.route("/api/users/<int:user_id>/roles", methods=["POST"], endpoint="assign_user_role")
    @login_required
    def assign_user_role(user_id: int):
        roles.assign_role(actor=current_principal(), user_id=user_id, role_id=json_body().get("role_id"))
        return ok(status=201, message="Role assigned")

    @app.route("/api/users/<int:user_id>/roles/<int:role_id>", methods=["DELETE"], endpoint="unassign_user_role")
    @login_required
    def unassign_user_role(user_id: int, role_id: int):
        roles.unassign_role(actor=current_principal(), user_id=user_id, role_id=role_id)
        return ok(message="Role unassigned")

    @app.route("/api/users/<int:user_id>/permissions", methods=["GET"], endpoint="user_permissions")
    @login_required
    def user_permissions(user_id: int):
        matrix = roles.get_user_permissions(actor=current_principal(), user_id=user_id)
        return ok(matrix.as_dict())

    @app.route("/api/modules", methods=["GET"], endpoint="list_modules")
    @login_required
    def list_modules():
        return ok({"modules": [m.value for m in Module], "actions": [c.value for c in Capability]})
