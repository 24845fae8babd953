from __future__ import annotations

from enum import Enum
from typing import Type, TypeVar, Union

from .exceptions import ValidationError

E = TypeVar("E", bound=Enum)


class Module(str, Enum):
    """Fixed areas of the academy system that permissions are granted on."""

    BATCHES = "batches"
    STUDENTS = "students"
    FACULTY = "faculty"
    EMPLOYEES = "employees"
    SESSIONS = "sessions"
    ATTENDANCE = "attendance"
    PAYMENTS = "payments"
    PORTFOLIOS = "portfolios"
    REPORTS = "reports"
    APPROVALS = "approvals"
    USERS = "users"
    SOFTWARE_COMPLETIONS = "software_completions"
    STUDENT_LEAVES = "student_leaves"
    BATCH_EXTENSIONS = "batch_extensions"
    EMPLOYEE_LEAVES = "employee_leaves"
    FACULTY_LEAVES = "faculty_leaves"


class Capability(str, Enum):
    VIEW = "view"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"


class AccessDecision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class SystemRole(str, Enum):
    """Seeded roles. They cannot be deleted or modified."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"
    EMPLOYEE = "employee"


class RequestStatus(str, Enum):
    """Approval workflow state. Anything but PENDING is terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def resulting_status(self) -> RequestStatus:
        return RequestStatus.APPROVED if self is Decision.APPROVE else RequestStatus.REJECTED


class RequestKind(str, Enum):
    """Kinds of approval requests sharing one transition contract."""

    STUDENT_LEAVE = "student_leave"
    FACULTY_LEAVE = "faculty_leave"
    EMPLOYEE_LEAVE = "employee_leave"
    BATCH_EXTENSION = "batch_extension"
    CHANGE_REQUEST = "change_request"

    @property
    def module(self) -> Module:
        return _KIND_MODULES[self]

    @property
    def is_self_service(self) -> bool:
        # The subject of a leave is a person who may file it for themselves.
        return self in _SELF_SERVICE_KINDS


_KIND_MODULES = {
    RequestKind.STUDENT_LEAVE: Module.STUDENT_LEAVES,
    RequestKind.FACULTY_LEAVE: Module.FACULTY_LEAVES,
    RequestKind.EMPLOYEE_LEAVE: Module.EMPLOYEE_LEAVES,
    RequestKind.BATCH_EXTENSION: Module.BATCH_EXTENSIONS,
    RequestKind.CHANGE_REQUEST: Module.APPROVALS,
}

_SELF_SERVICE_KINDS = frozenset(
    {RequestKind.STUDENT_LEAVE, RequestKind.FACULTY_LEAVE, RequestKind.EMPLOYEE_LEAVE}
)


def parse_enum(enum_cls: Type[E], value: Union[E, str, None], field_name: str) -> E:
    """Coerce a raw string (or an existing member) into ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r}. Allowed: {allowed}")
