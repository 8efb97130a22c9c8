from decimal import Decimal

import pytest

from boxoffice.utils.currency import format_currency, from_cents, to_cents


@pytest.mark.parametrize("amount,expected", [
    (1234.5, "$1,234.50"),
    ("57.92", "$57.92"),
    (Decimal("1000000"), "$1,000,000.00"),
    (0, "$0.00"),
    (-3.5, "-$3.50"),
    ("abc", "$0.00"),
    (None, "$0.00"),
    ("NaN", "$0.00"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_cents_conversion():
    assert to_cents("19.99") == 1999
    assert to_cents(0.105) == 11
    assert from_cents(5792) == Decimal("57.92")
