from __future__ import annotations

import logging
import re
from typing import Optional

from ..core.exceptions import UnavailableError
from .repository import SerialRepository

logger = logging.getLogger(__name__)

_TRAILING_DIGITS = re.compile(r"(\d+)$")


def parse_serial(value: Optional[str]) -> int:
    """Numeric part of a serial: ``"7"`` -> 7, ``"PA-STU-0001"`` -> 1, anything else -> 0."""
    text = (value or "").strip()
    try:
        return int(text)
    except ValueError:
        pass
    match = _TRAILING_DIGITS.search(text)
    return int(match.group(1)) if match else 0


class SerialAllocator:
    """Best-effort next display serial for a new student.

    Not linearizable: two concurrent callers can be handed the same value.
    """

    def __init__(self, serials: SerialRepository):
        self._serials = serials

    def next_serial(self) -> Optional[str]:
        try:
            numbers = [n for n in (parse_serial(s) for s in self._serials.list_serials()) if n > 0]
            next_number = max(numbers) + 1 if numbers else 1

            proposal = str(next_number)
            if self._serials.serial_exists(proposal):
                logger.warning("Serial %s already taken, handing out %s", proposal, next_number + 1)
                return str(next_number + 1)
            return proposal
        except UnavailableError as exc:
            logger.warning("Serial allocation skipped: %s", exc)
            return None
