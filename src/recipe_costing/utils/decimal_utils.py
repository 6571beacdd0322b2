"""Decimal helpers shared by ingestion, costing and formatting.

Money and quantities are always ``Decimal``. Floats are converted through
``str`` so ``0.1`` becomes ``Decimal("0.1")`` and not its binary expansion.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number or decimal-encoded string to Decimal.

    Args:
        value: Decimal, int, float or numeric string

    Returns:
        Decimal value

    Raises:
        ValueError: If the value is not a finite number

    Examples:
        >>> to_decimal("2.50")
        Decimal('2.50')
        >>> to_decimal(0.1)
        Decimal('0.1')
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError(f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantize(value: Decimal, places: int) -> Decimal:
    """
    Round a Decimal to ``places`` decimal places using ROUND_HALF_UP.

    Only for the display boundary; never feed the result back into a
    calculation.

    Examples:
        >>> quantize(Decimal("0.1735"), 2)
        Decimal('0.17')
        >>> quantize(Decimal("0.125"), 2)
        Decimal('0.13')
    """
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)
