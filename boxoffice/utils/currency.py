from decimal import Decimal, InvalidOperation

from ..services.pricing import cents_to_dollars, dollars_to_cents, to_decimal


def to_cents(amount) -> int:
    return dollars_to_cents(amount)


def from_cents(cents: int) -> Decimal:
    return cents_to_dollars(cents)


def format_currency(amount) -> str:
    """USD with thousand separators, e.g. 1234.5 -> '$1,234.50'. Unparseable input -> '$0.00'."""
    try:
        value = to_decimal(amount)
    except (InvalidOperation, ValueError, TypeError):
        return "$0.00"
    if not value.is_finite():
        return "$0.00"
    value = from_cents(to_cents(value))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
