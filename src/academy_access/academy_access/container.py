from __future__ import annotations

from dataclasses import dataclass

from .approvals.mysql_approval_repository import MySQLApprovalRepository
from .approvals.mysql_subject_repository import MySQLSubjectRepository
from .approvals.service import ApprovalService
from .authorization.service import AuthorizationService
from .database.connection import DBConfig, DatabaseConnection
from .roles.mysql_role_repository import MySQLRoleRepository
from .roles.service import RoleService
from .serials.mysql_serial_repository import MySQLSerialRepository
from .serials.service import SerialAllocator


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    roles_repo: MySQLRoleRepository
    approvals_repo: MySQLApprovalRepository
    subjects_repo: MySQLSubjectRepository
    serials_repo: MySQLSerialRepository

    authorization_service: AuthorizationService
    role_service: RoleService
    approval_service: ApprovalService
    serial_allocator: SerialAllocator


def build_container(*, db_config: dict) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    roles_repo = MySQLRoleRepository(conn)
    approvals_repo = MySQLApprovalRepository(conn)
    subjects_repo = MySQLSubjectRepository(conn)
    serials_repo = MySQLSerialRepository(conn)

    authorization_service = AuthorizationService(roles_repo)
    role_service = RoleService(roles_repo, authorization_service)
    approval_service = ApprovalService(approvals_repo, subjects_repo, authorization_service)
    serial_allocator = SerialAllocator(serials_repo)

    return Container(
        conn=conn,
        roles_repo=roles_repo,
        approvals_repo=approvals_repo,
        subjects_repo=subjects_repo,
        serials_repo=serials_repo,
        authorization_service=authorization_service,
        role_service=role_service,
        approval_service=approval_service,
        serial_allocator=serial_allocator,
    )
