from __future__ import annotations

import logging
from typing import Union

from ..core.enums import AccessDecision, Capability, Module, parse_enum
from ..core.exceptions import ForbiddenError
from ..roles.model import PermissionMatrix
from ..roles.repository import RoleRepository
from .model import Principal

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Use case: decide whether a principal may perform an action on a module.

    Decisions read the persisted matrix on every call; nothing is cached, so a
    role or permission change is visible to the very next decision.
    """

    def __init__(self, roles: RoleRepository):
        self._roles = roles

    def list_effective_permissions(self, user_id: int) -> PermissionMatrix:
        return PermissionMatrix.merge(self._roles.list_permissions_for_user(int(user_id)))

    def authorize(
        self,
        principal: Principal,
        module: Union[Module, str],
        action: Union[Capability, str],
    ) -> AccessDecision:
        module = parse_enum(Module, module, "module")
        action = parse_enum(Capability, action, "action")

        if principal.is_superadmin:
            return AccessDecision.ALLOW

        matrix = self.list_effective_permissions(principal.user_id)
        if matrix.allows(module, action):
            return AccessDecision.ALLOW
        return AccessDecision.DENY

    def is_allowed(self, principal: Principal, module: Union[Module, str], action: Union[Capability, str]) -> bool:
        return self.authorize(principal, module, action) is AccessDecision.ALLOW

    def require(self, principal: Principal, module: Union[Module, str], action: Union[Capability, str]) -> None:
        module = parse_enum(Module, module, "module")
        action = parse_enum(Capability, action, "action")
        if not self.is_allowed(principal, module, action):
            logger.info("Denied user %s %s on %s", principal.user_id, action.value, module.value)
            raise ForbiddenError(f"Missing '{action.value}' permission on '{module.value}'")
