from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Union

from ..authorization.model import Principal
from ..authorization.service import AuthorizationService
from ..common.validators import optional_text, require_bool, require_non_empty, require_positive_int
from ..core.enums import Capability, Module, parse_enum
from ..core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from .model import Capabilities, PermissionMatrix, Role, RoleWithPermissions
from .repository import RoleRepository

logger = logging.getLogger(__name__)


class RoleService:
    """Use case: manage roles, the permission matrix and role assignments.

    Every mutating call names its acting principal and is gated through the
    authorization engine on the ``users`` module.
    """

    def __init__(self, roles: RoleRepository, authz: AuthorizationService):
        self._roles = roles
        self._authz = authz

    def _get_role_or_raise(self, role_id: int) -> Role:
        role = self._roles.get_by_id(require_positive_int(role_id, "Role ID"))
        if not role:
            raise NotFoundError("Role not found")
        return role

    def _with_permissions(self, role: Role) -> RoleWithPermissions:
        return RoleWithPermissions(role=role, matrix=PermissionMatrix.merge(self._roles.list_permissions(role.role_id)))

    @staticmethod
    def _parse_permissions(
        permissions: Optional[Mapping[Union[Module, str], Union[Capabilities, Mapping[str, object]]]],
    ) -> dict:
        if permissions is None:
            return {}
        if not isinstance(permissions, Mapping):
            raise ValidationError("Permissions must be an object keyed by module")
        out: dict = {}
        for raw_module, raw_caps in permissions.items():
            module = parse_enum(Module, raw_module, "module")
            if module in out:
                raise ValidationError(f"Module '{module.value}' is given twice")
            out[module] = raw_caps if isinstance(raw_caps, Capabilities) else Capabilities.from_mapping(raw_caps)
        return out

    # -------- Roles --------
    def create_role(
        self,
        *,
        actor: Principal,
        name: str,
        description: Optional[str] = None,
        permissions: Optional[Mapping[Union[Module, str], Union[Capabilities, Mapping[str, object]]]] = None,
    ) -> Role:
        self._authz.require(actor, Module.USERS, Capability.ADD)

        name = require_non_empty(name, "Role name")
        parsed = self._parse_permissions(permissions)

        if self._roles.get_by_name(name):
            raise ConflictError(f"Role '{name}' already exists")

        role_id = self._roles.create_role(name=name, description=optional_text(description), permissions=parsed)
        logger.info("Role %r (id=%s) created by user %s", name, role_id, actor.user_id)
        return self._get_role_or_raise(role_id)

    def update_role(
        self,
        *,
        actor: Principal,
        role_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Role:
        self._authz.require(actor, Module.USERS, Capability.EDIT)

        role = self._get_role_or_raise(role_id)
        if role.is_system:
            raise ForbiddenError("System roles cannot be modified")

        new_name = role.name if name is None else require_non_empty(name, "Role name")
        if new_name != role.name:
            existing = self._roles.get_by_name(new_name)
            if existing and existing.role_id != role.role_id:
                raise ConflictError(f"Role '{new_name}' already exists")

        self._roles.update_role(
            role_id=role.role_id,
            name=new_name,
            description=role.description if description is None else optional_text(description),
            is_active=role.is_active if is_active is None else require_bool(is_active, "is_active"),
        )
        logger.info("Role %s updated by user %s", role.role_id, actor.user_id)
        return self._get_role_or_raise(role.role_id)

    def delete_role(self, *, actor: Principal, role_id: int) -> None:
        self._authz.require(actor, Module.USERS, Capability.DELETE)

        role = self._get_role_or_raise(role_id)
        if role.is_system:
            raise ForbiddenError("System roles cannot be deleted")

        if not self._roles.delete_role(role.role_id):
            raise NotFoundError("Role not found")
        logger.info("Role %r (id=%s) deleted by user %s", role.name, role.role_id, actor.user_id)

    def get_role(self, *, actor: Principal, role_id: int) -> RoleWithPermissions:
        self._authz.require(actor, Module.USERS, Capability.VIEW)
        return self._with_permissions(self._get_role_or_raise(role_id))

    def list_roles(self, *, actor: Principal) -> List[RoleWithPermissions]:
        self._authz.require(actor, Module.USERS, Capability.VIEW)
        return [self._with_permissions(role) for role in self._roles.list_all()]

    # -------- Permission entries --------
    def set_permission(
        self,
        *,
        actor: Principal,
        role_id: int,
        module: Union[Module, str],
        capabilities: Union[Capabilities, Mapping[str, object]],
    ) -> None:
        self._authz.require(actor, Module.USERS, Capability.EDIT)

        module = parse_enum(Module, module, "module")
        caps = capabilities if isinstance(capabilities, Capabilities) else Capabilities.from_mapping(capabilities)
        role = self._get_role_or_raise(role_id)

        self._roles.upsert_permission(role_id=role.role_id, module=module, capabilities=caps)
        logger.info(
            "Permission %s on %s set to %s by user %s",
            role.name,
            module.value,
            caps.as_dict(),
            actor.user_id,
        )

    def list_effective_permissions(self, user_id: int) -> PermissionMatrix:
        return self._authz.list_effective_permissions(user_id)

    def get_user_permissions(self, *, actor: Principal, user_id: int) -> PermissionMatrix:
        user_id = require_positive_int(user_id, "User ID")
        if actor.user_id != user_id:
            self._authz.require(actor, Module.USERS, Capability.VIEW)
        return self.list_effective_permissions(user_id)

    # -------- Assignments --------
    def assign_role(self, *, actor: Principal, user_id: int, role_id: int) -> None:
        self._authz.require(actor, Module.USERS, Capability.EDIT)

        user_id = require_positive_int(user_id, "User ID")
        role = self._get_role_or_raise(role_id)
        if not role.is_active:
            raise ValidationError("Inactive roles cannot be assigned")

        self._roles.assign(user_id=user_id, role_id=role.role_id)
        logger.info("Role %r assigned to user %s by user %s", role.name, user_id, actor.user_id)

    def unassign_role(self, *, actor: Principal, user_id: int, role_id: int) -> None:
        self._authz.require(actor, Module.USERS, Capability.EDIT)

        user_id = require_positive_int(user_id, "User ID")
        role_id = require_positive_int(role_id, "Role ID")
        if not self._roles.unassign(user_id=user_id, role_id=role_id):
            raise NotFoundError("Role assignment not found")
        logger.info("Role %s unassigned from user %s by user %s", role_id, user_id, actor.user_id)

    def list_user_roles(self, *, actor: Principal, user_id: int) -> List[Role]:
        user_id = require_positive_int(user_id, "User ID")
        if actor.user_id != user_id:
            self._authz.require(actor, Module.USERS, Capability.VIEW)
        return list(self._roles.list_roles_for_user(user_id))
