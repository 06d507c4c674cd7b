"""
Module: cash_kernel.db.types
Responsibility: Conversion helpers every layer uses for monetary amounts.
Architecture position: Kernel > DB.  May be imported by domain/, services/,
    selectors/ and store/.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats for money.  Floats arriving from user input are converted via
      their string form, so 0.1 stays 0.1 rather than 0.1000000000000000055.
    - Lenient coercion: ``coerce_money`` turns empty or non-numeric input
      into zero instead of raising.  Validation of *meaning* (e.g. a
      positive withdrawal) is a service concern, not a parsing concern.

Failure modes:
    - ``money_from_str`` raises ``decimal.InvalidOperation`` on garbage;
      it is the strict variant used when reading persisted records.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def money_from_str(value: str) -> Decimal:
    """
    Strictly parse a persisted monetary string.

    Raises:
        decimal.InvalidOperation: If value is not a number.
    """
    return Decimal(value)


def coerce_money(value: Any) -> Decimal:
    """
    Leniently convert user input to a Decimal amount.

    ``None``, empty strings, booleans and anything non-numeric become
    ``Decimal("0")``.  A single comma with no dot is a decimal separator;
    any other commas are thousands separators.

    Example:
        coerce_money("12,50")    -> Decimal("12.50")
        coerce_money("1,000.50") -> Decimal("1000.50")
        coerce_money("abc")      -> Decimal("0")
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        value = str(value)
    text = str(value).strip()
    if "." in text or text.count(",") > 1:
        text = text.replace(",", "")
    else:
        text = text.replace(",", ".")
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO

