"""
VAT Returns Service.

Handles:
- Classification of sales and purchases into return boxes
- Aggregation into a VATReturnData snapshot
- Orchestration of ledger read, aggregation and document rendering

Single Responsibility: VAT returns computation
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from vatledger import metrics
from vatledger.core.config import settings
from vatledger.core.exceptions import FormattingError
from vatledger.models.ledger import (
    BusinessInfo,
    Direction,
    FilingPeriod,
    TransactionRecord,
    VATCategory,
    VATReturnData,
)
from vatledger.services.formatters.vat_return import format_vat_return_text, render_vat_return_html
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.tax_reporting.period_utils import (
    business_timezone,
    filing_deadline,
    resolve_period_bounds,
    to_local,
)
from vatledger.utils.money import ZERO, round_money, to_decimal

logger = logging.getLogger(__name__)


@dataclass
class _Totals:
    """Exact running sums, rounded only when the snapshot is built."""

    taxable_sales: Decimal = ZERO
    standard_vat: Decimal = ZERO
    reduced_sales: Decimal = ZERO
    reduced_vat: Decimal = ZERO
    zero_rated_sales: Decimal = ZERO
    exempt_sales: Decimal = ZERO
    taxable_purchases: Decimal = ZERO
    purchase_vat: Decimal = ZERO
    revenue: Decimal = ZERO
    expenses: Decimal = ZERO


class VATCalculationService:
    """VAT classification and summation (SRP: calculations only).

    Pure reduction over a list of records: no I/O, safe to run repeatedly
    and concurrently, and independent of input order.
    """

    def __init__(self, default_standard_rate: Optional[Decimal] = None, validate: bool = True):
        self.default_standard_rate = to_decimal(
            default_standard_rate if default_standard_rate is not None else settings.DEFAULT_VAT_RATE
        )
        self.validate = validate

    def calculate_for_period(
        self,
        records: Iterable[TransactionRecord],
        period: FilingPeriod,
    ) -> VATReturnData:
        """
        Reduce a period's transactions to a VAT return.

        Sales (``in``) by category:
            standard -> taxable sales (net) and standard-rate VAT
            reduced  -> reduced-rate sales (net); VAT joins output VAT
            zero     -> zero-rated sales (net)
            exempt   -> exempt sales (gross)
            none     -> revenue only
        Purchases (``out``) in standard/reduced are taxable purchases whose
        VAT is the input VAT credit.

        Returns:
            VATReturnData with every money field rounded once to cents
        """
        ordered = sorted(records, key=lambda r: (_utc(r), r.id))
        totals = _Totals()
        first_standard_sale: Optional[TransactionRecord] = None

        for record in ordered:
            if self.validate:
                record.check_invariants()
            if record.direction is Direction.IN:
                totals.revenue += record.amount
                self._classify_sale(record, totals)
                if first_standard_sale is None and record.vat_category is VATCategory.STANDARD:
                    first_standard_sale = record
            elif record.direction is Direction.OUT:
                totals.expenses += record.amount
                self._classify_purchase(record, totals)
            else:
                raise FormattingError(f"Unhandled direction {record.direction!r}", field="direction")

        total_output_vat = totals.standard_vat + totals.reduced_vat
        total_input_vat = totals.purchase_vat
        standard_rate = (
            first_standard_sale.vat_rate if first_standard_sale is not None else self.default_standard_rate
        )

        return VATReturnData(
            period=period,
            total_taxable_sales=round_money(totals.taxable_sales),
            standard_rate_vat_on_sales=round_money(totals.standard_vat),
            reduced_rate_sales=round_money(totals.reduced_sales),
            zero_rated_sales=round_money(totals.zero_rated_sales),
            exempt_sales=round_money(totals.exempt_sales),
            total_output_vat=round_money(total_output_vat),
            total_taxable_purchases=round_money(totals.taxable_purchases),
            vat_on_purchases=round_money(totals.purchase_vat),
            total_input_vat=round_money(total_input_vat),
            net_vat_payable=round_money(total_output_vat - total_input_vat),
            total_transactions=len(ordered),
            total_revenue=round_money(totals.revenue),
            total_expenses=round_money(totals.expenses),
            standard_rate=standard_rate,
            filing_deadline=filing_deadline(period),
        )

    @staticmethod
    def _classify_sale(record: TransactionRecord, totals: _Totals) -> None:
        category = record.vat_category
        if category is VATCategory.STANDARD:
            totals.taxable_sales += record.net_amount
            totals.standard_vat += record.vat_amount
        elif category is VATCategory.REDUCED:
            totals.reduced_sales += record.net_amount
            totals.reduced_vat += record.vat_amount
        elif category is VATCategory.ZERO:
            totals.zero_rated_sales += record.net_amount
        elif category is VATCategory.EXEMPT:
            totals.exempt_sales += record.amount
        elif category is VATCategory.NONE:
            pass
        else:
            raise FormattingError(f"Unhandled VAT category {category!r}", field="vat_category")

    @staticmethod
    def _classify_purchase(record: TransactionRecord, totals: _Totals) -> None:
        category = record.vat_category
        if category.carries_vat:
            totals.taxable_purchases += record.net_amount
            totals.purchase_vat += record.vat_amount
        elif category in (VATCategory.ZERO, VATCategory.EXEMPT, VATCategory.NONE):
            pass
        else:
            raise FormattingError(f"Unhandled VAT category {category!r}", field="vat_category")


def _utc(record: TransactionRecord):
    return to_local(record.timestamp, timezone.utc)


@dataclass(frozen=True)
class VATReturnResult:
    """A computed return together with its two rendered forms."""

    data: VATReturnData
    text: str
    html: str


class VATService:
    """
    Main VAT service (orchestrates VAT operations).

    Manages:
    - Period resolution and the single ledger read per return
    - Aggregation into VATReturnData
    - Rendering of the text form and the semantic HTML document
    """

    def __init__(
        self,
        reader: LedgerReader,
        calculator: Optional[VATCalculationService] = None,
        tz: Optional[timezone] = None,
    ):
        self.reader = reader
        self.calculator = calculator or VATCalculationService()
        self.tz = tz or business_timezone()

    def fetch_period_transactions(self, tenant_id: str, period: FilingPeriod) -> List[TransactionRecord]:
        start, end = resolve_period_bounds(period, self.tz)
        return self.reader.query(tenant_id, start, end)

    def calculate_return(self, tenant_id: str, period: FilingPeriod) -> VATReturnData:
        """
        Calculate the VAT return for a tenant and filing period.

        Args:
            tenant_id: Tenant whose ledger is read
            period: Monthly or quarterly filing period

        Returns:
            VATReturnData snapshot (not persisted)
        """
        started = time.perf_counter()
        records = self.fetch_period_transactions(tenant_id, period)
        data = self.calculator.calculate_for_period(records, period)
        metrics.vat_return_record(period.frequency.value, time.perf_counter() - started)
        logger.info(
            "Computed VAT return tenant=%s period=%s transactions=%d net_vat=%s",
            tenant_id,
            period.tax_period,
            data.total_transactions,
            data.net_vat_payable,
        )
        return data

    def generate_vat_return(
        self,
        tenant_id: str,
        business: BusinessInfo,
        period: FilingPeriod,
        today: Optional[date] = None,
    ) -> VATReturnResult:
        """Compute the return and render both document forms from one snapshot."""
        data = self.calculate_return(tenant_id, period)
        return VATReturnResult(
            data=data,
            text=format_vat_return_text(data, business, today=today),
            html=render_vat_return_html(data, business, today=today),
        )
