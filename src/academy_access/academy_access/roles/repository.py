from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Module
from .model import Capabilities, PermissionEntry, Role


class RoleRepository(Protocol):
    """Persistence for roles, their permission entries and user assignments.

    Services depend on this interface; the MySQL implementation lives in
    ``mysql_role_repository``.
    """

    # Roles
    def get_by_id(self, role_id: int) -> Optional[Role]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Role]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Role]:
        raise NotImplementedError

    def create_role(
        self,
        *,
        name: str,
        description: Optional[str],
        is_system: bool = False,
        permissions: Optional[Mapping[Module, Capabilities]] = None,
    ) -> int:
        """Insert the role and its initial entries; ConflictError on duplicate name."""

        raise NotImplementedError

    def update_role(
        self,
        *,
        role_id: int,
        name: str,
        description: Optional[str],
        is_active: bool,
    ) -> bool:
        raise NotImplementedError

    def delete_role(self, role_id: int) -> bool:
        """Delete the role with its entries and assignments in one transaction."""

        raise NotImplementedError

    # Permission entries
    def upsert_permission(self, *, role_id: int, module: Module, capabilities: Capabilities) -> None:
        raise NotImplementedError

    def list_permissions(self, role_id: int) -> Sequence[PermissionEntry]:
        raise NotImplementedError

    def list_permissions_for_user(self, user_id: int) -> Sequence[PermissionEntry]:
        """Entries of every role currently assigned to the user."""

        raise NotImplementedError

    # Assignments
    def assign(self, *, user_id: int, role_id: int) -> None:
        """ConflictError when the pair already exists."""

        raise NotImplementedError

    def unassign(self, *, user_id: int, role_id: int) -> bool:
        raise NotImplementedError

    def list_roles_for_user(self, user_id: int) -> Sequence[Role]:
        raise NotImplementedError
