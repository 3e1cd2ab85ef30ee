"""Local validation for payment input. Runs before any network call."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Real
from typing import Any, Optional

from ...domain.errors import InvalidInput
from ...domain.payment.entities import MINOR_UNITS_PER_MAJOR

SUPPORTED_CURRENCIES = frozenset({"INR"})


def validate_amount(value: Any) -> Decimal:
    """Return the amount as a Decimal, rejecting anything that is not a positive finite number."""
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise InvalidInput("Amount must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise InvalidInput("Amount must be a number") from e
    if not amount.is_finite():
        raise InvalidInput("Amount must be a finite number")
    if amount <= 0:
        raise InvalidInput("Amount must be greater than zero")
    return amount


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to an integer count of minor units."""
    minor = (amount * MINOR_UNITS_PER_MAJOR).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    if minor < 1:
        raise InvalidInput("Amount is smaller than the smallest currency unit")
    return int(minor)


def validate_currency(currency: Optional[str]) -> str:
    if not currency:
        raise InvalidInput("Currency is required")
    code = currency.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise InvalidInput(f"Unsupported currency: {currency}")
    return code


def validate_recipient(
    recipient_name: Optional[str], recipient_handle: Optional[str]
) -> tuple[str, str]:
    """Both recipient fields are required and must not be blank."""
    name = (recipient_name or "").strip()
    handle = (recipient_handle or "").strip()
    if not name or not handle:
        raise InvalidInput("Recipient name and handle are required")
    return name, handle
