from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from src.academy_access.academy_access.authorization.service import AuthorizationService
from src.academy_access.academy_access.core.exceptions import ConflictError
from src.academy_access.academy_access.roles.model import Capabilities, PermissionEntry, Role


class FakeRoleRepo:
    """In-memory RoleRepository with the same uniqueness rules as the tables."""

    def __init__(self):
        self._next_id = 1
        self.roles: dict[int, Role] = {}
        self.perms: dict[tuple, Capabilities] = {}
        self.assignments: set[tuple[int, int]] = set()

    # helpers for test setup
    def seed_role(self, name, permissions=None, *, is_system=False, is_active=True):
        role_id = self.create_role(name=name, description=None, is_system=is_system, permissions=permissions)
        if not is_active:
            self.roles[role_id] = replace(self.roles[role_id], is_active=False)
        return role_id

    def grant(self, user_id, role_id):
        self.assign(user_id=user_id, role_id=role_id)

    # RoleRepository
    def get_by_id(self, role_id):
        return self.roles.get(int(role_id))

    def get_by_name(self, name):
        return next((r for r in self.roles.values() if r.name == name), None)

    def list_all(self):
        return list(self.roles.values())

    def create_role(self, *, name, description, is_system=False, permissions=None):
        if self.get_by_name(name):
            raise ConflictError(f"Role '{name}' already exists")
        role_id = self._next_id
        self._next_id += 1
        self.roles[role_id] = Role(
            role_id=role_id,
            name=name,
            description=description,
            is_system=is_system,
            is_active=True,
            created_at=datetime(2026, 1, 1, 8, 0, 0),
        )
        for module, caps in (permissions or {}).items():
            self.perms[(role_id, module)] = caps
        return role_id

    def update_role(self, *, role_id, name, description, is_active):
        role = self.roles.get(int(role_id))
        if not role or role.is_system:
            return False
        self.roles[role.role_id] = replace(role, name=name, description=description, is_active=is_active)
        return True

    def delete_role(self, role_id):
        role = self.roles.get(int(role_id))
        if not role or role.is_system:
            return False
        del self.roles[role.role_id]
        self.perms = {k: v for k, v in self.perms.items() if k[0] != role.role_id}
        self.assignments = {a for a in self.assignments if a[1] != role.role_id}
        return True

    def upsert_permission(self, *, role_id, module, capabilities):
        self.perms[(int(role_id), module)] = capabilities

    def list_permissions(self, role_id):
        return [
            PermissionEntry(role_id=rid, module=module, capabilities=caps)
            for (rid, module), caps in self.perms.items()
            if rid == int(role_id)
        ]

    def list_permissions_for_user(self, user_id):
        out = []
        for uid, rid in self.assignments:
            if uid == int(user_id):
                out.extend(self.list_permissions(rid))
        return out

    def assign(self, *, user_id, role_id):
        key = (int(user_id), int(role_id))
        if key in self.assignments:
            raise ConflictError("Role is already assigned to this user")
        self.assignments.add(key)

    def unassign(self, *, user_id, role_id):
        key = (int(user_id), int(role_id))
        if key not in self.assignments:
            return False
        self.assignments.discard(key)
        return True

    def list_roles_for_user(self, user_id):
        return sorted(
            (self.roles[rid] for uid, rid in self.assignments if uid == int(user_id)),
            key=lambda r: r.name,
        )


@pytest.fixture()
def role_repo():
    return FakeRoleRepo()


@pytest.fixture()
def authz(role_repo):
    return AuthorizationService(role_repo)
