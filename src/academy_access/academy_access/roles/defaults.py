"""Default permission matrices for the seeded system roles.

Flags read ``v``iew, ``a``dd, ``e``dit, ``d``elete; ``-`` means not granted.
"""
from __future__ import annotations

from typing import Dict

from ..core.enums import Module, SystemRole
from .model import Capabilities

_COLUMNS = (SystemRole.SUPERADMIN, SystemRole.ADMIN, SystemRole.FACULTY, SystemRole.STUDENT, SystemRole.EMPLOYEE)

#                                   superadmin  admin   faculty  student  employee
_TABLE = {
    Module.BATCHES:                ("vaed",    "vaed", "v---",  "v---",  "----"),
    Module.STUDENTS:               ("vaed",    "vae-", "v---",  "----",  "----"),
    Module.FACULTY:                ("vaed",    "vae-", "----",  "----",  "----"),
    Module.EMPLOYEES:              ("vaed",    "vae-", "----",  "----",  "----"),
    Module.SESSIONS:               ("vaed",    "vaed", "vae-",  "v---",  "----"),
    Module.ATTENDANCE:             ("vaed",    "vaed", "vae-",  "v---",  "va--"),
    Module.PAYMENTS:               ("vaed",    "vae-", "----",  "v---",  "----"),
    Module.PORTFOLIOS:             ("vaed",    "vae-", "v-e-",  "vae-",  "----"),
    Module.REPORTS:                ("vaed",    "v---", "----",  "----",  "----"),
    Module.APPROVALS:              ("vaed",    "vae-", "----",  "----",  "----"),
    Module.USERS:                  ("vaed",    "vae-", "----",  "----",  "----"),
    Module.SOFTWARE_COMPLETIONS:   ("vaed",    "vae-", "vae-",  "v---",  "----"),
    Module.STUDENT_LEAVES:         ("vaed",    "vae-", "v---",  "va--",  "----"),
    Module.BATCH_EXTENSIONS:       ("vaed",    "vae-", "----",  "----",  "----"),
    Module.EMPLOYEE_LEAVES:        ("vaed",    "vae-", "----",  "----",  "va--"),
    Module.FACULTY_LEAVES:         ("vaed",    "vae-", "va--",  "----",  "----"),
}

SYSTEM_ROLE_DESCRIPTIONS: Dict[SystemRole, str] = {
    SystemRole.SUPERADMIN: "Full access to every module",
    SystemRole.ADMIN: "Academy administration",
    SystemRole.FACULTY: "Teaching staff",
    SystemRole.STUDENT: "Enrolled student",
    SystemRole.EMPLOYEE: "Non-teaching staff",
}


def default_permissions(role: SystemRole) -> Dict[Module, Capabilities]:
    col = _COLUMNS.index(role)
    return {module: Capabilities.from_flags(flags[col]) for module, flags in _TABLE.items()}
