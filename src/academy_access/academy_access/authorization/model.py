from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Union

from ..core.enums import SystemRole


@dataclass(frozen=True)
class Principal:
    """The authenticated actor, passed explicitly into every service call.

    ``roles`` are the role names attached by upstream authentication.
    """

    user_id: int
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, user_id: int, roles: Union[str, Iterable[str], None] = ()) -> "Principal":
        if isinstance(roles, str):
            roles = (roles,)
        roles = roles or ()
        return cls(user_id=int(user_id), roles=frozenset(str(r).strip().lower() for r in roles))

    @property
    def is_superadmin(self) -> bool:
        return SystemRole.SUPERADMIN.value in self.roles
