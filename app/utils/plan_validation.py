"""Plan and payment input validation utilities."""
import math
import secrets
import string
from datetime import datetime, timezone
from typing import Optional, Union

from app.core.errors import InvalidInputError

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def parse_amount(value: Union[str, float, int, None]) -> float:
    """Parse a money amount; raises InvalidInputError when not a finite number."""
    if value is None or isinstance(value, bool):
        raise InvalidInputError("Amount is required")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid amount: {value!r}")
    if not math.isfinite(amount):
        raise InvalidInputError(f"Invalid amount: {value!r}")
    return amount


def validate_claim_amount(value) -> float:
    """Members can only claim positive payments."""
    amount = parse_amount(value)
    if amount <= 0:
        raise InvalidInputError(f"Payment amount must be positive: {amount}")
    return amount


def validate_manual_amount(value) -> float:
    """
    Owner-entered payments may be negative (corrections) but never zero.
    """
    amount = parse_amount(value)
    if amount == 0:
        raise InvalidInputError("Payment amount cannot be zero")
    return amount


def validate_cost(value, field: str = "cost") -> float:
    cost = parse_amount(value)
    if cost < 0:
        raise InvalidInputError(f"{field} cannot be negative: {cost}")
    return cost


def parse_for_month(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a ``YYYY-MM`` month tag into the first instant of that month (UTC).

    Empty input means the payment is not earmarked.
    """
    if value is None or not str(value).strip():
        return None
    try:
        month = datetime.strptime(str(value).strip(), "%Y-%m")
    except ValueError:
        raise InvalidInputError(f"Invalid month, expected YYYY-MM: {value!r}")
    return month.replace(tzinfo=timezone.utc)


def generate_join_code(length: int) -> str:
    """Random invite code of uppercase letters and digits."""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))
