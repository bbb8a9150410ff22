"""Decimal helpers. All money is kept to 2 places, half-up."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from pesaflip.core.exceptions import BusinessError

CENTS = Decimal("0.01")
# Numeric(20, 2) columns hold at most 18 integer digits
MAX_AMOUNT = Decimal("1e18")


def to_money(value) -> Decimal:
    """Coerce int/float/str/Decimal to a 2-place Decimal. Raises ValueError on junk."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
        if not amount.is_finite() or abs(amount) >= MAX_AMOUNT:
            raise ValueError(f"Not a valid amount: {value!r}")
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Not a valid amount: {value!r}")


def positive_amount(value) -> Decimal:
    """Money amount from user input; 400 unless it is a real number above zero."""
    try:
        amount = to_money(value)
    except ValueError:
        raise BusinessError.bad_request("Amount must be a positive number")
    if amount <= 0:
        raise BusinessError.bad_request("Amount must be a positive number")
    return amount


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    """``rate`` percent of ``base``, rounded to cents."""
    return to_money(Decimal(base) * Decimal(rate) / Decimal("100"))
