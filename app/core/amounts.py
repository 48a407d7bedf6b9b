from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from app.core.exceptions import InvalidAmountError

AMOUNT_ERROR_MESSAGE = "Amount must be a positive number"
MINIMUM_AMOUNT_MESSAGE = "Amount must be at least 0.01"
MAX_AMOUNT = Decimal("1000000000")
MAXIMUM_AMOUNT_MESSAGE = f"Amount must not exceed {MAX_AMOUNT}"


def parse_amount(value: Any) -> Decimal:
    """
    Turns a client supplied amount (JSON number or numeric string) into a Decimal.

    The Decimal keeps the literal the client sent, so "100.50" stays "100.50".
    Amounts that round to zero minor units or exceed MAX_AMOUNT are rejected
    before any payload is built.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(AMOUNT_ERROR_MESSAGE)
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(AMOUNT_ERROR_MESSAGE)
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(AMOUNT_ERROR_MESSAGE)
    if amount > MAX_AMOUNT:
        raise InvalidAmountError(MAXIMUM_AMOUNT_MESSAGE)
    if to_minor_units(amount) < 1:
        raise InvalidAmountError(MINIMUM_AMOUNT_MESSAGE)
    return amount


def to_minor_units(amount: Decimal) -> int:
    # paise for INR; rounds half-up so 10.005 becomes 1001
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(amount: Decimal) -> str:
    return format(amount, "f")
