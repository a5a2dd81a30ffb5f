"""
Validation Helpers

Decimal coercion and amount checks shared by the holding store and the
portfolio manager.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.exceptions import InvalidAmount


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """
    Convert a numeric input into a finite Decimal.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal('0.1')``
    rather than its binary expansion.

    Args:
        value: int, float, str or Decimal
        field_name: Name used in the error message

    Returns:
        Decimal value

    Raises:
        InvalidAmount: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidAmount(field_name, value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmount(field_name, value) from None
    else:
        raise InvalidAmount(field_name, value)

    if not result.is_finite():
        raise InvalidAmount(field_name, value)
    return result


def require_positive(value: Any, field_name: str = "amount") -> Decimal:
    """Coerce ``value`` and require it to be strictly greater than zero."""
    result = to_decimal(value, field_name)
    if result <= 0:
        raise InvalidAmount(field_name, value)
    return result


def require_non_negative(value: Any, field_name: str = "price") -> Decimal:
    """Coerce ``value`` and require it to be zero or greater."""
    result = to_decimal(value, field_name)
    if result < 0:
        raise InvalidAmount(field_name, value)
    return result


def normalize_symbol(symbol: str) -> str:
    """Upper-case and strip a ticker symbol."""
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidAmount("symbol", symbol)
    return symbol.strip().upper()
