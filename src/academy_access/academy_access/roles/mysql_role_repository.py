from __future__ import annotations

from typing import Mapping, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import Module
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Capabilities, PermissionEntry, Role
from .repository import RoleRepository

_ROLE_COLUMNS = "r.id, r.name, r.description, r.is_system, r.is_active, r.created_at"


def _row_to_role(r: dict) -> Role:
    return Role(
        role_id=int(r["id"]),
        name=r["name"],
        description=r.get("description"),
        is_system=bool(r.get("is_system")),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
    )


def _row_to_entry(r: dict) -> PermissionEntry:
    return PermissionEntry(
        role_id=int(r["role_id"]),
        module=Module(r["module"]),
        capabilities=Capabilities(
            view=bool(r["can_view"]),
            add=bool(r["can_add"]),
            edit=bool(r["can_edit"]),
            delete=bool(r["can_delete"]),
        ),
    )


_UPSERT_PERMISSION_SQL = """
    INSERT INTO role_permissions(role_id, module, can_view, can_add, can_edit, can_delete)
    VALUES(%s,%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE
        can_view=VALUES(can_view), can_add=VALUES(can_add),
        can_edit=VALUES(can_edit), can_delete=VALUES(can_delete)
"""


def _permission_params(role_id: int, module: Module, caps: Capabilities) -> tuple:
    return (int(role_id), module.value, int(caps.view), int(caps.add), int(caps.edit), int(caps.delete))


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Roles --------
    def get_by_id(self, role_id: int) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ROLE_COLUMNS} FROM roles r WHERE r.id=%s", (int(role_id),))
            r = fetchone(cur)
            return _row_to_role(r) if r else None

    def get_by_name(self, name: str) -> Optional[Role]:
        # Exact match; the column and uq_roles_name use utf8mb4_bin.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ROLE_COLUMNS} FROM roles r WHERE r.name = BINARY %s", (name,))
            r = fetchone(cur)
            return _row_to_role(r) if r else None

    def list_all(self) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ROLE_COLUMNS} FROM roles r ORDER BY r.created_at DESC, r.id DESC")
            return [_row_to_role(r) for r in fetchall(cur)]

    def create_role(
        self,
        *,
        name: str,
        description: Optional[str],
        is_system: bool = False,
        permissions: Optional[Mapping[Module, Capabilities]] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO roles(name, description, is_system, is_active)
                    VALUES(%s,%s,%s,1)
                    """,
                    (name, description, int(bool(is_system))),
                )
                role_id = int(cur.lastrowid)
                for module, caps in (permissions or {}).items():
                    cur.execute(_UPSERT_PERMISSION_SQL, _permission_params(role_id, module, caps))
                return role_id
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise ConflictError(f"Role '{name}' already exists")
            raise

    def update_role(self, *, role_id: int, name: str, description: Optional[str], is_active: bool) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE roles
                    SET name=%s, description=%s, is_active=%s
                    WHERE id=%s AND is_system=0
                    """,
                    (name, description, int(bool(is_active)), int(role_id)),
                )
                return cur.rowcount > 0
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise ConflictError(f"Role '{name}' already exists")
            raise

    def delete_role(self, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT is_system FROM roles WHERE id=%s FOR UPDATE", (int(role_id),))
            r = fetchone(cur)
            if not r or bool(r["is_system"]):
                return False
            cur.execute("DELETE FROM user_roles WHERE role_id=%s", (int(role_id),))
            cur.execute("DELETE FROM role_permissions WHERE role_id=%s", (int(role_id),))
            cur.execute("DELETE FROM roles WHERE id=%s", (int(role_id),))
            return cur.rowcount > 0

    # -------- Permission entries --------
    def upsert_permission(self, *, role_id: int, module: Module, capabilities: Capabilities) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_UPSERT_PERMISSION_SQL, _permission_params(role_id, module, capabilities))

    def list_permissions(self, role_id: int) -> Sequence[PermissionEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT role_id, module, can_view, can_add, can_edit, can_delete
                FROM role_permissions
                WHERE role_id=%s
                ORDER BY module ASC
                """,
                (int(role_id),),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    def list_permissions_for_user(self, user_id: int) -> Sequence[PermissionEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.role_id, p.module, p.can_view, p.can_add, p.can_edit, p.can_delete
                FROM user_roles ur
                JOIN role_permissions p ON p.role_id = ur.role_id
                WHERE ur.user_id=%s
                """,
                (int(user_id),),
            )
            return [_row_to_entry(r) for r in fetchall(cur)]

    # -------- Assignments --------
    def assign(self, *, user_id: int, role_id: int) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO user_roles(user_id, role_id) VALUES(%s,%s)",
                    (int(user_id), int(role_id)),
                )
        except IntegrityError as exc:
            if is_duplicate_key(exc):
                raise ConflictError("Role is already assigned to this user")
            raise

    def unassign(self, *, user_id: int, role_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM user_roles WHERE user_id=%s AND role_id=%s",
                (int(user_id), int(role_id)),
            )
            return cur.rowcount > 0

    def list_roles_for_user(self, user_id: int) -> Sequence[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ROLE_COLUMNS}
                FROM user_roles ur
                JOIN roles r ON r.id = ur.role_id
                WHERE ur.user_id=%s
                ORDER BY r.name ASC
                """,
                (int(user_id),),
            )
            return [_row_to_role(r) for r in fetchall(cur)]
