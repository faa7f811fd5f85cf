# File: src/carledger/core/validators.py
"""Validation for money amounts and dates on sales, finance records and report queries."""

from datetime import date
from decimal import Decimal, InvalidOperation

from carledger.utils.datetime import today_local

# Largest value a NUMERIC(14, 2) column holds
MAX_AMOUNT = Decimal("999999999999.99")


def validate_currency(value: Decimal | float | str, max_value: Decimal = MAX_AMOUNT) -> Decimal:
    """
    Validate a money amount (sale price, purchase cost, finance record cost).

    Args:
        value: Amount to validate
        max_value: Maximum allowed value

    Returns:
        Validated Decimal

    Raises:
        ValueError: If value is not a finite number, is negative, exceeds max,
            or has more than 2 decimal places
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid currency format: {value}") from e

    if not amount.is_finite():
        raise ValueError(f"Invalid currency format: {value}")
    if amount < 0:
        raise ValueError("Currency value cannot be negative")
    if amount > max_value:
        raise ValueError(f"Currency value exceeds maximum allowed: {max_value}")
    if amount.as_tuple().exponent < -2:
        raise ValueError("Currency value cannot have more than 2 decimal places")

    return amount


def validate_no_future_date(value: date, field_name: str = "Date") -> date:
    """Reject dates after today in the reporting timezone."""
    if value > today_local():
        raise ValueError(f"{field_name} cannot be in the future")
    return value


def validate_date_range(start: date | None, end: date | None) -> None:
    """Both ends are optional; when both are given, start must not be after end."""
    if start is not None and end is not None and start > end:
        raise ValueError(f"Start date {start.isoformat()} is after end date {end.isoformat()}")
