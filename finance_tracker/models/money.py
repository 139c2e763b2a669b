"""
Permissive numeric parsing for user-entered amounts.

Amounts arrive from the UI as strings ("1,250,000", "99.5", "").
The parsing policy is deliberately forgiving: thousands separators
and surrounding whitespace are ignored, a leading numeric prefix is
used when trailing garbage follows ("12abc" -> 12), and anything that
is not a number at all becomes zero. Stricter checks (amount > 0)
happen later, in ledger validation.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any, Optional

from pydantic import BeforeValidator

ZERO = Decimal("0")
CENTS = Decimal("0.01")

_SEPARATORS = re.compile(r"[,\s_]")
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_decimal(value: Any, places: Optional[Decimal] = None) -> Decimal:
    """
    Parse a user-supplied value into a Decimal, never raising.

    Args:
        value: str, int, float, Decimal or None
        places: quantum to round to (e.g. CENTS); None keeps full precision

    Returns:
        The parsed Decimal, or zero for anything non-numeric
    """
    if value is None or isinstance(value, bool):
        return ZERO

    try:
        if isinstance(value, Decimal):
            parsed = value
        elif isinstance(value, int):
            parsed = Decimal(value)
        elif isinstance(value, float):
            parsed = Decimal(repr(value))
        else:
            match = _NUMERIC_PREFIX.match(_SEPARATORS.sub("", str(value)))
            if match is None:
                return ZERO
            parsed = Decimal(match.group(0))

        if not parsed.is_finite():
            return ZERO
        if places is not None:
            parsed = parsed.quantize(places, rounding=ROUND_HALF_UP)
        return parsed
    except (InvalidOperation, ValueError):
        return ZERO


def parse_amount(value: Any) -> Decimal:
    """Parse a money amount, rounded to cents."""
    return parse_decimal(value, CENTS)


def parse_quantity(value: Any) -> Decimal:
    """Parse a quantity (units, shares) at full precision."""
    return parse_decimal(value)


# Field types for draft models: accept raw UI input, store a Decimal
Amount = Annotated[Decimal, BeforeValidator(parse_amount)]
Quantity = Annotated[Decimal, BeforeValidator(parse_quantity)]
