from __future__ import annotations

from decimal import Decimal

import pytest

from dashboard.utils.currency import cents_to_dollars, format_currency


@pytest.mark.parametrize(
    "cents,expected",
    [
        (0, "$0.00"),
        (5, "$0.05"),
        (12345, "$123.45"),
        (123456789, "$1,234,567.89"),
        (Decimal("20348"), "$203.48"),
        (-100, "-$1.00"),
    ],
)
def test_format_currency(cents, expected):
    assert format_currency(cents) == expected


def test_cents_to_dollars():
    assert cents_to_dollars(12345) == 123.45
    assert cents_to_dollars(Decimal("500")) == 5.0
