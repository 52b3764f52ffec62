"""Currency helpers: exact two-decimal amounts and display formatting.

All monetary values are ``Decimal``. Floats are accepted only at the
boundary and are converted through ``str()`` so ``0.1`` stays ``0.1``.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from loan_tracker.exceptions import InvalidInputError

Amount = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Amount) -> Decimal:
    """Convert a value to ``Decimal`` without rounding.

    Raises
    ------
    InvalidInputError
        If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid amount: {value!r}") from e

    if not amount.is_finite():
        raise InvalidInputError(f"Invalid amount: {value!r}")
    return amount


def to_money(value: Amount) -> Decimal:
    """Round a value to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def is_whole_cents(amount: Decimal) -> bool:
    """Return True if the amount has no more than two decimal places."""
    return amount == amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(amount: Amount, symbol: str = "S/") -> str:
    """Format an amount for display, e.g. ``S/ 1,234.50``.

    Parameters
    ----------
    amount : Amount
        Amount to format.
    symbol : str
        Currency symbol (Peruvian sol by default).

    Returns
    -------
    str
        Formatted amount with thousands separators and two decimals.
    """
    value = to_money(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {abs(value):,.2f}"
