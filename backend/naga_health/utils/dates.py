# naga_health/utils/dates.py
from datetime import date, datetime, timezone
from typing import Optional


def calculate_age(birth_date: str, today: Optional[date] = None) -> Optional[int]:
    """Whole years between an ISO birth date and today; None when the date is unreadable."""
    try:
        born = date.fromisoformat(birth_date)
    except (TypeError, ValueError):
        return None
    today = today or date.today()
    had_birthday = (today.month, today.day) >= (born.month, born.day)
    return today.year - born.year - (0 if had_birthday else 1)


def parse_timestamp(value: str) -> datetime:
    """Read an ISO timestamp as an aware datetime.

    Browser records end in "Z" (``toISOString``); timestamps without an
    offset are taken as UTC.
    """
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
