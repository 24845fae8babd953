from __future__ import annotations

from datetime import date, datetime
from typing import Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: Union[str, date, None]) -> date:
    """Accept a ``date`` as-is or parse a ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def now_local() -> datetime:
    # DATETIME columns carry no fractional seconds.
    return datetime.now().replace(microsecond=0)
