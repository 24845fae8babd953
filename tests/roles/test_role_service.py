from __future__ import annotations

import pytest

from src.academy_access.academy_access.authorization.model import Principal
from src.academy_access.academy_access.core.enums import Capability, Module
from src.academy_access.academy_access.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.academy_access.academy_access.roles.model import Capabilities
from src.academy_access.academy_access.roles.service import RoleService

SUPER = Principal.of(1, ["superadmin"])


@pytest.fixture()
def service(role_repo, authz):
    return RoleService(role_repo, authz)


def test_create_role_trims_name_and_stores_initial_permissions(service, role_repo):
    role = service.create_role(
        actor=SUPER,
        name="  Coordinator ",
        description="Runs batches",
        permissions={"batches": {"view": True, "edit": True}},
    )

    assert role.name == "Coordinator"
    assert role.is_system is False
    assert role.is_active is True
    detail = service.get_role(actor=SUPER, role_id=role.role_id)
    assert detail.matrix.for_module(Module.BATCHES) == Capabilities(view=True, edit=True)
    assert detail.matrix.for_module(Module.STUDENTS) == Capabilities.NONE


def test_create_role_rejects_blank_and_duplicate_names(service):
    with pytest.raises(ValidationError):
        service.create_role(actor=SUPER, name="   ")

    service.create_role(actor=SUPER, name="Counsellor")
    with pytest.raises(ConflictError):
        service.create_role(actor=SUPER, name="Counsellor")

    # exact match only: a different case is another role
    assert service.create_role(actor=SUPER, name="counsellor").name == "counsellor"


def test_create_role_differing_only_by_case_from_a_system_role(service, role_repo):
    role_repo.seed_role("admin", is_system=True)

    created = service.create_role(actor=SUPER, name="Admin")
    assert created.name == "Admin"
    assert created.is_system is False
    assert role_repo.get_by_name("admin").role_id != created.role_id


def test_create_role_requires_users_add(service, role_repo):
    viewer = role_repo.seed_role("viewer", {Module.USERS: Capabilities(view=True)})
    role_repo.grant(5, viewer)

    with pytest.raises(ForbiddenError):
        service.create_role(actor=Principal.of(5, ["viewer"]), name="Another")


def test_set_permission_then_effective_matrix_is_exact(service, role_repo):
    role_id = role_repo.seed_role("Tutor")
    role_repo.grant(7, role_id)

    service.set_permission(
        actor=SUPER,
        role_id=role_id,
        module=Module.STUDENTS,
        capabilities=Capabilities(view=True, edit=True),
    )

    matrix = service.list_effective_permissions(7)
    assert matrix.for_module(Module.STUDENTS) == Capabilities(view=True, edit=True)
    for module in Module:
        if module is not Module.STUDENTS:
            assert matrix.for_module(module) == Capabilities.NONE


def test_set_permission_overwrites_single_entry(service, role_repo):
    role_id = role_repo.seed_role("Tutor", {Module.SESSIONS: Capabilities.ALL})

    service.set_permission(actor=SUPER, role_id=role_id, module="sessions", capabilities={"view": True})

    entries = role_repo.list_permissions(role_id)
    assert len(entries) == 1
    assert entries[0].capabilities == Capabilities(view=True)


def test_set_permission_unknown_module_or_role(service, role_repo):
    role_id = role_repo.seed_role("Tutor")
    with pytest.raises(ValidationError):
        service.set_permission(actor=SUPER, role_id=role_id, module="library", capabilities={"view": True})
    with pytest.raises(NotFoundError):
        service.set_permission(actor=SUPER, role_id=999, module="batches", capabilities={"view": True})


@pytest.mark.parametrize(
    "capabilities",
    [
        {"view": "false", "delete": "false"},
        {"view": 1},
        {"veiw": True},
        {"canView": True},
        {"view": True, "can_view": False},
        ["view"],
    ],
)
def test_set_permission_rejects_malformed_capabilities(service, role_repo, capabilities):
    role_id = role_repo.seed_role("Cashier")

    with pytest.raises(ValidationError):
        service.set_permission(actor=SUPER, role_id=role_id, module="payments", capabilities=capabilities)
    assert role_repo.list_permissions(role_id) == []


def test_set_permission_accepts_can_prefixed_keys(service, role_repo):
    role_id = role_repo.seed_role("Cashier")

    service.set_permission(
        actor=SUPER, role_id=role_id, module="payments", capabilities={"can_view": True, "delete": False}
    )
    assert role_repo.list_permissions(role_id)[0].capabilities == Capabilities(view=True)


@pytest.mark.parametrize(
    "permissions",
    [
        [{"module": "batches", "canView": True}],
        "batches",
        {"batches": True},
        {"batches": {"view": "yes"}},
    ],
)
def test_create_role_rejects_malformed_permissions(service, role_repo, permissions):
    with pytest.raises(ValidationError):
        service.create_role(actor=SUPER, name="Broken", permissions=permissions)
    assert role_repo.get_by_name("Broken") is None


def test_effective_permissions_or_merge_across_roles(service, role_repo):
    reader = role_repo.seed_role("reader", {Module.PAYMENTS: Capabilities(view=True)})
    cleaner = role_repo.seed_role("cleaner", {Module.PAYMENTS: Capabilities(delete=True)})
    role_repo.grant(8, reader)
    role_repo.grant(8, cleaner)

    first = service.list_effective_permissions(8)
    second = service.list_effective_permissions(8)

    assert first.for_module(Module.PAYMENTS) == Capabilities(view=True, delete=True)
    assert first == second


def test_user_without_roles_has_empty_matrix(service):
    matrix = service.list_effective_permissions(42)
    assert all(caps == Capabilities.NONE for caps in matrix.cells.values())
    assert set(matrix.as_dict()) == {m.value for m in Module}


def test_system_role_cannot_be_deleted_and_assignments_survive(service, role_repo):
    student = role_repo.seed_role("student", {Module.BATCHES: Capabilities(view=True)}, is_system=True)
    role_repo.grant(20, student)

    with pytest.raises(ForbiddenError):
        service.delete_role(actor=SUPER, role_id=student)

    assert role_repo.get_by_id(student) is not None
    assert (20, student) in role_repo.assignments
    assert service.list_effective_permissions(20).allows(Module.BATCHES, Capability.VIEW)


def test_system_role_cannot_be_modified(service, role_repo):
    admin = role_repo.seed_role("admin", is_system=True)
    with pytest.raises(ForbiddenError):
        service.update_role(actor=SUPER, role_id=admin, name="boss")


def test_delete_role_cascades_to_permissions_and_assignments(service, role_repo):
    temp = role_repo.seed_role("temp", {Module.REPORTS: Capabilities(view=True)})
    role_repo.grant(30, temp)

    service.delete_role(actor=SUPER, role_id=temp)

    assert role_repo.get_by_id(temp) is None
    assert role_repo.list_permissions(temp) == []
    assert not service.list_effective_permissions(30).allows(Module.REPORTS, Capability.VIEW)

    with pytest.raises(NotFoundError):
        service.delete_role(actor=SUPER, role_id=temp)


def test_update_role_rename_conflict_and_deactivate(service, role_repo):
    a = role_repo.seed_role("alpha")
    role_repo.seed_role("beta")

    with pytest.raises(ConflictError):
        service.update_role(actor=SUPER, role_id=a, name="beta")

    updated = service.update_role(actor=SUPER, role_id=a, is_active=False)
    assert updated.is_active is False
    assert updated.name == "alpha"


def test_assign_rules(service, role_repo):
    active = role_repo.seed_role("active")
    inactive = role_repo.seed_role("inactive", is_active=False)

    service.assign_role(actor=SUPER, user_id=50, role_id=active)
    with pytest.raises(ConflictError):
        service.assign_role(actor=SUPER, user_id=50, role_id=active)
    with pytest.raises(ValidationError):
        service.assign_role(actor=SUPER, user_id=50, role_id=inactive)
    with pytest.raises(NotFoundError):
        service.assign_role(actor=SUPER, user_id=50, role_id=404)

    service.unassign_role(actor=SUPER, user_id=50, role_id=active)
    with pytest.raises(NotFoundError):
        service.unassign_role(actor=SUPER, user_id=50, role_id=active)


def test_users_can_read_their_own_roles_and_permissions(service, role_repo):
    student = role_repo.seed_role("student", {Module.STUDENT_LEAVES: Capabilities(view=True, add=True)})
    role_repo.grant(60, student)
    me = Principal.of(60, ["student"])

    assert [r.name for r in service.list_user_roles(actor=me, user_id=60)] == ["student"]
    assert service.get_user_permissions(actor=me, user_id=60).allows(Module.STUDENT_LEAVES, Capability.ADD)

    with pytest.raises(ForbiddenError):
        service.list_user_roles(actor=me, user_id=61)
