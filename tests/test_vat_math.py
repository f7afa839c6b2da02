from decimal import Decimal

import pytest

from vatledger.models.ledger import VATCategory
from vatledger.services.vat_math import calculate_vat, extract_vat, rate_for_category


def test_calculate_vat_adds_tax():
    result = calculate_vat(Decimal("100"), 10)
    assert result.vat_amount == Decimal("10.00")
    assert result.gross_amount == Decimal("110.00")


def test_extract_vat_from_gross():
    result = extract_vat(Decimal("110"), 10)
    assert result.net_amount == Decimal("100.00")
    assert result.vat_amount == Decimal("10.00")


def test_extract_vat_parts_sum_to_gross():
    result = extract_vat(Decimal("9.99"), Decimal("2.5"))
    assert result.net_amount + result.vat_amount == Decimal("9.99")


@pytest.mark.parametrize(
    "category, expected",
    [
        (VATCategory.STANDARD, Decimal("10")),
        (VATCategory.REDUCED, Decimal("5")),
        (VATCategory.ZERO, Decimal("0")),
        (VATCategory.EXEMPT, Decimal("0")),
        (VATCategory.NONE, Decimal("0")),
    ],
)
def test_rate_for_category(category, expected):
    assert rate_for_category(category, 10, 5) == expected


def test_reduced_falls_back_to_standard():
    assert rate_for_category("reduced", 10) == Decimal("10")


def test_unknown_category_rejected():
    with pytest.raises(ValueError):
        rate_for_category("luxury", 10)
