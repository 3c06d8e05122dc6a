"""
Value encoders shared by the field-set builders.

All date based values are rendered in UTC. Timestamps and nonces are produced
from an injectable clock and random source so builders stay deterministic
under test.
"""

from __future__ import annotations

import secrets
from datetime import date, datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Callable, Optional

from .config import ValidationError

__all__ = [
    "NONCE_BYTES",
    "add_years",
    "format_amount",
    "format_date",
    "format_datetime",
    "is_present",
    "make_nonce",
    "make_timestamp",
    "utc_date",
    "utc_now",
]

NONCE_BYTES = 16
_CENTS = Decimal("0.01")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_date(value: datetime) -> date:
    return _to_utc(value).date()


def make_timestamp(now: Optional[datetime] = None) -> str:
    """Return the current instant as ``YYYYMMDDHHMMSS`` in UTC."""
    return format_datetime(utc_now() if now is None else now)


def make_nonce(token_hex: Callable[[int], str] = secrets.token_hex) -> str:
    """Return a fresh 32 character hex nonce."""
    return token_hex(NONCE_BYTES)


def format_date(value: Any, field_name: str = "date") -> str:
    """Render a date as ``YYYYMMDD``."""
    if isinstance(value, datetime):
        value = _to_utc(value)
    elif not isinstance(value, date):
        raise ValidationError(f"The field {field_name} should be a date.")
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def format_datetime(value: Any, field_name: str = "datetime") -> str:
    """Render a datetime as ``YYYYMMDDHHMMSS``."""
    if not isinstance(value, datetime):
        raise ValidationError(f"The field {field_name} should be a datetime.")
    value = _to_utc(value)
    return (
        f"{value.year:04d}{value.month:02d}{value.day:02d}"
        f"{value.hour:02d}{value.minute:02d}{value.second:02d}"
    )


def format_amount(value: Any, field_name: str = "amount") -> str:
    """
    Render a money amount with exactly two decimals, truncating extra digits.

    Only real numbers are accepted: strings and booleans are rejected so that a
    caller cannot send an unparsed form value by accident.
    """
    if value is None:
        raise ValidationError(f"The field {field_name} is missing.")
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"The {field_name} type should be numeric.")
    try:
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
        amount = amount.quantize(_CENTS, rounding=ROUND_DOWN)
    except InvalidOperation as exc:
        raise ValidationError(f"The {field_name} type should be numeric.") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"The field {field_name} must be greater than zero.")
    return str(amount)


def is_present(value: Any) -> bool:
    """
    Decide whether an optional field was supplied.

    ``None`` and blank strings are absent. Numeric zero is a real value.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return value.replace(year=value.year + years, day=28)
