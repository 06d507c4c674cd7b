"""
Month keys.

A month is identified by its ``YYYY-MM`` string.  Zero-padded keys sort
lexicographically in calendar order, so plain string comparison is used
everywhere months are ordered ("latest archive before March" is
``max(m for m in months if m < "2024-03")``).
"""

import re
from datetime import date

from cash_kernel.domain.clock import Clock
from cash_kernel.exceptions import ValidationError

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


def month_of(day: date | str) -> str:
    """Month key for a date or an ISO date string."""
    if isinstance(day, date):
        return f"{day.year:04d}-{day.month:02d}"
    return str(day)[:7]


def current_month(clock: Clock) -> str:
    return month_of(clock.today())


def validate_month(month: str) -> str:
    """Return ``month`` unchanged or raise ValidationError."""
    if not isinstance(month, str) or not _MONTH_RE.match(month):
        raise ValidationError("month", f"expected YYYY-MM, got {month!r}")
    return month


def in_month(day: str, month: str) -> bool:
    """Prefix match of an ISO date string against a month key."""
    return day.startswith(month)
