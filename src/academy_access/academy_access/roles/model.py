from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional

from ..common.validators import require_bool
from ..core.enums import Capability, Module, parse_enum
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Role:
    role_id: int
    name: str
    description: Optional[str]
    is_system: bool
    is_active: bool
    created_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.role_id,
            "name": self.name,
            "description": self.description,
            "is_system": self.is_system,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Capabilities:
    """The four independent grants a role holds on one module."""

    view: bool = False
    add: bool = False
    edit: bool = False
    delete: bool = False

    def allows(self, capability: Capability) -> bool:
        return bool(getattr(self, capability.value))

    def __or__(self, other: "Capabilities") -> "Capabilities":
        return Capabilities(
            view=self.view or other.view,
            add=self.add or other.add,
            edit=self.edit or other.edit,
            delete=self.delete or other.delete,
        )

    @classmethod
    def from_flags(cls, flags: str) -> "Capabilities":
        """Build from a compact ``"vaed"`` string; ``-`` marks a missing grant."""
        flags = flags.lower()
        return cls(view="v" in flags, add="a" in flags, edit="e" in flags, delete="d" in flags)

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "Capabilities":
        """Strict parse: keys are capability names (or ``can_*``), values real booleans."""
        if not isinstance(data, Mapping):
            raise ValidationError("Capabilities must be an object")
        flags: Dict[str, bool] = {}
        for key, value in data.items():
            name = key.value if isinstance(key, Capability) else str(key)
            if name.startswith("can_"):
                name = name[len("can_"):]
            action = parse_enum(Capability, name, "action")
            if action.value in flags:
                raise ValidationError(f"Capability '{action.value}' is given twice")
            flags[action.value] = require_bool(value, str(key))
        return cls(**flags)

    def as_dict(self) -> Dict[str, bool]:
        return {"view": self.view, "add": self.add, "edit": self.edit, "delete": self.delete}


Capabilities.NONE = Capabilities()
Capabilities.ALL = Capabilities(view=True, add=True, edit=True, delete=True)


@dataclass(frozen=True)
class PermissionEntry:
    role_id: int
    module: Module
    capabilities: Capabilities


@dataclass(frozen=True)
class PermissionMatrix:
    """Capabilities for every module; modules without a grant are all-false."""

    cells: Mapping[Module, Capabilities] = field(default_factory=dict)

    def __post_init__(self) -> None:
        full = {module: self.cells.get(module, Capabilities.NONE) for module in Module}
        object.__setattr__(self, "cells", full)

    @classmethod
    def merge(cls, entries: Iterable[PermissionEntry]) -> "PermissionMatrix":
        cells: Dict[Module, Capabilities] = {}
        for entry in entries:
            cells[entry.module] = cells.get(entry.module, Capabilities.NONE) | entry.capabilities
        return cls(cells)

    def for_module(self, module: Module) -> Capabilities:
        return self.cells[module]

    def allows(self, module: Module, capability: Capability) -> bool:
        return self.cells[module].allows(capability)

    def as_dict(self) -> Dict[str, Dict[str, bool]]:
        return {module.value: caps.as_dict() for module, caps in self.cells.items()}


@dataclass(frozen=True)
class RoleWithPermissions:
    role: Role
    matrix: PermissionMatrix

    def as_dict(self) -> dict:
        data = self.role.as_dict()
        data["permissions"] = self.matrix.as_dict()
        return data
