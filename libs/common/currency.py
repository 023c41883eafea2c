"""Money helpers.

Amounts are held as ``Decimal`` with two decimal places everywhere: in the
database (``Numeric(12, 2)``), in pricing, and in gateway payloads. Floats
only appear at the JSON boundary.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_amount(value: Number) -> Decimal:
    """Coerce to a two-place Decimal (round half-up). Raises ValueError."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: Number) -> Decimal:
    """Parse without rounding, for comparing what a third party reported."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount


def format_amount(value: Number) -> str:
    """Render as a plain two-decimal string, e.g. ``1000.00``."""
    return f"{to_amount(value):.2f}"


def amounts_match(reported: Number, expected: Number, tolerance: Number) -> bool:
    """True when ``|reported - expected| <= tolerance``."""
    diff = abs(parse_amount(reported) - parse_amount(expected))
    return diff <= parse_amount(tolerance)
