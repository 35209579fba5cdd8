# utils/coerce.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser

from errors import ValidationError

# largest value a signed 64-bit INTEGER column holds
MAX_ID = 2**63 - 1


def coerce_id(value: Any) -> Optional[int]:
    """Return ``value`` as a positive int id, or None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            return None
        value = int(value)
    if not isinstance(value, int):
        return None
    return value if 0 < value <= MAX_ID else None


def clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()


def parse_due_date(value: Any) -> Optional[datetime]:
    """Parse a due date into an aware UTC datetime; naive input is taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = parser.parse(str(value))
        except (ValueError, OverflowError) as exc:
            raise ValidationError("Invalid due date") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
