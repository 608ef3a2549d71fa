"""
Input normalization shared by the engine and the store adapters.

Everything here raises MalformedInput on bad values.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from ..errors import MalformedInput

DateLike = Union[date, datetime, str]

CENTS = Decimal("0.01")


def normalize_code(code) -> str:
    """Strip and upper-case a billable code."""
    if code is None:
        raise MalformedInput("Billable code is required")
    value = str(code).strip().upper()
    if not value:
        raise MalformedInput("Billable code must not be empty")
    return value


def normalize_scope(scope_id) -> str:
    if scope_id is None:
        raise MalformedInput("Scope id is required")
    value = str(scope_id).strip()
    if not value:
        raise MalformedInput("Scope id must not be empty")
    return value


def to_day(value: Optional[DateLike], default_today: bool = True) -> date:
    """Truncate a date, datetime or ISO string to a calendar day."""
    if value is None:
        if default_today:
            return date.today()
        raise MalformedInput("A date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # fromisoformat only accepts the UTC "Z" suffix from 3.11 on
        if text.endswith(('Z', 'z')):
            text = text[:-1] + '+00:00'
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise MalformedInput(f"Unparseable date: {value!r}")
    raise MalformedInput(f"Unsupported date type: {type(value).__name__}")


def to_price(value) -> Decimal:
    """Convert to a non-negative 2-dp Decimal."""
    if isinstance(value, bool) or value is None:
        raise MalformedInput(f"Invalid price: {value!r}")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise MalformedInput(f"Invalid price: {value!r}")
    if not price.is_finite():
        raise MalformedInput(f"Invalid price: {value!r}")
    if price < 0:
        raise MalformedInput(f"Price must not be negative: {value!r}")
    return round_currency(price)


def round_currency(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)
