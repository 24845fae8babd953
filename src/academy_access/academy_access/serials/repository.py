from __future__ import annotations

from typing import Protocol, Sequence


class SerialRepository(Protocol):
    """Read access to the student serial numbers already handed out."""

    def list_serials(self) -> Sequence[str]:
        """Every non-null serial. Raises UnavailableError when the store cannot be read."""

        raise NotImplementedError

    def serial_exists(self, serial: str) -> bool:
        raise NotImplementedError
