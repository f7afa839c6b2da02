"""VAT arithmetic on single amounts.

Used when capturing a sale or purchase to split a price into net and VAT
parts before the record reaches the ledger.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from vatledger.models.ledger import VATCategory
from vatledger.utils.money import round_money, to_decimal

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class VATBreakdown:
    net_amount: Decimal
    vat_amount: Decimal
    gross_amount: Decimal


def calculate_vat(net_amount, rate) -> VATBreakdown:
    """Add VAT to a net (ex-VAT) amount.

    Example: net 100 at 10% -> VAT 10, gross 110
    """
    net = to_decimal(net_amount)
    vat = round_money(net * to_decimal(rate) / HUNDRED)
    return VATBreakdown(net_amount=net, vat_amount=vat, gross_amount=net + vat)


def extract_vat(gross_amount, rate) -> VATBreakdown:
    """Split a VAT-inclusive amount into net and VAT.

    Example: gross 110 at 10% -> net 100, VAT 10
    """
    gross = to_decimal(gross_amount)
    net = round_money(gross / (1 + to_decimal(rate) / HUNDRED))
    return VATBreakdown(net_amount=net, vat_amount=gross - net, gross_amount=gross)


def rate_for_category(category: VATCategory, standard_rate, reduced_rate=None) -> Decimal:
    """Applicable rate for a VAT category.

    Reduced falls back to the standard rate when no reduced rate is set.
    """
    category = VATCategory(category)
    if category is VATCategory.STANDARD:
        return to_decimal(standard_rate)
    if category is VATCategory.REDUCED:
        return to_decimal(reduced_rate) if reduced_rate is not None else to_decimal(standard_rate)
    if category in (VATCategory.ZERO, VATCategory.EXEMPT, VATCategory.NONE):
        return Decimal("0")
    raise ValueError(f"Unhandled VAT category: {category!r}")
