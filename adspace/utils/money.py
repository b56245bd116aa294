"""Fixed-point money helpers."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from adspace.core.exceptions import InvalidAmount

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | float | str, context: str = "amount") -> Decimal:
    """Convert a money or rate input to Decimal, rejecting bad values.

    Floats are converted through their string form so 0.1 stays 0.1.

    Raises:
        InvalidAmount: value is negative, NaN, infinite or not numeric
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"{context}: expected a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{context}: expected a number, got {value!r}")

    if not amount.is_finite():
        raise InvalidAmount(f"{context}: amount must be finite, got {value!r}")
    if amount < 0:
        raise InvalidAmount(f"{context}: amount must not be negative, got {value!r}")
    return amount


def quantize(amount: Decimal) -> Decimal:
    """Round to the smallest currency unit (half up)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Unrounded `percent`% of `amount`."""
    return amount * percent / HUNDRED
