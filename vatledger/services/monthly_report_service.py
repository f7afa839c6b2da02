"""
Monthly Report Service.

A "how was this month?" summary for small business owners: income,
expenses, profit, VAT collected, top income categories and a comparison
with the previous month's profit. Rendered as chat-friendly text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timezone
from decimal import ROUND_FLOOR, Decimal
from typing import Any, Dict, Iterable, List, Optional

from vatledger import metrics
from vatledger.core.config import settings
from vatledger.core.exceptions import LedgerQueryError
from vatledger.models.ledger import EN_MONTHS, TETUM_MONTHS, Direction, FilingPeriod, TransactionRecord
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.tax_reporting.period_utils import (
    business_timezone,
    local_today,
    month_bounds,
    previous_month,
)
from vatledger.utils.money import ZERO, fmt_usd, round_money

logger = logging.getLogger(__name__)

DIVIDER = "─" * 20
HALF = Decimal("0.5")

# Report wording differs slightly from receipts (plural "Vendas", generic "Seluk")
REPORT_CATEGORY_LABELS = {
    "sales": "Vendas",
    "service": "Servisu",
    "payment_received": "Simu pagamentu",
    "other_income": "Seluk",
    "stock": "Estoke",
    "rent": "Alugel",
    "supplies": "Fornese",
    "salary": "Saláriu",
    "transport": "Transporte",
    "food": "Hahan",
    "other_expense": "Seluk",
}


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal


@dataclass(frozen=True)
class MonthSummary:
    """Exact (unrounded) totals of one month's transactions."""

    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    vat_collected: Decimal = ZERO
    tx_count: int = 0
    income_by_category: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def profit(self) -> Decimal:
        return self.total_in - self.total_out


@dataclass(frozen=True)
class MonthComparison:
    profit_delta: Decimal
    percent_change: int


@dataclass(frozen=True)
class MonthlyReportData:
    year: int
    month: int
    total_in: Decimal
    total_out: Decimal
    profit: Decimal
    tx_count: int
    vat_collected: Decimal
    top_categories: List[CategoryTotal]
    prev_month_profit: Optional[Decimal]
    comparison: Optional[MonthComparison]

    @property
    def month_label(self) -> str:
        return f"{EN_MONTHS[self.month - 1]} {self.year}"

    @property
    def month_label_tl(self) -> str:
        return f"{TETUM_MONTHS[self.month - 1]} {self.year}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "month_label": self.month_label,
            "month_label_tl": self.month_label_tl,
            "total_in": float(self.total_in),
            "total_out": float(self.total_out),
            "profit": float(self.profit),
            "tx_count": self.tx_count,
            "vat_collected": float(self.vat_collected),
            "top_categories": [
                {"category": c.category, "total": float(c.total)} for c in self.top_categories
            ],
            "prev_month_profit": None if self.prev_month_profit is None else float(self.prev_month_profit),
            "comparison": None if self.comparison is None else {
                "profit_delta": float(self.comparison.profit_delta),
                "percent_change": self.comparison.percent_change,
            },
        }


def summarize_month(records: Iterable[TransactionRecord]) -> MonthSummary:
    total_in = total_out = vat_collected = ZERO
    count = 0
    by_category: Dict[str, Decimal] = {}
    for record in records:
        count += 1
        if record.direction is Direction.IN:
            total_in += record.amount
            vat_collected += record.vat_amount
            by_category[record.category] = by_category.get(record.category, ZERO) + record.amount
        else:
            total_out += record.amount
    return MonthSummary(
        total_in=total_in,
        total_out=total_out,
        vat_collected=vat_collected,
        tx_count=count,
        income_by_category=by_category,
    )


def percent_change(delta: Decimal, previous: Decimal) -> int:
    """Whole-number percent change; 0 when the previous profit was exactly 0.

    Halves round toward positive infinity: 12.5 gives 13, -12.5 gives -12.
    """
    if previous == ZERO:
        return 0
    ratio = delta / abs(previous) * 100
    return int((ratio + HALF).to_integral_value(rounding=ROUND_FLOOR))


def build_monthly_report(
    current: MonthSummary,
    previous: Optional[MonthSummary],
    year: int,
    month: int,
    top_n: Optional[int] = None,
) -> MonthlyReportData:
    """
    Assemble the report from two month summaries.

    ``previous`` is None (or empty) when no prior-month data exists, in
    which case the comparison is omitted rather than reported as zero.
    """
    top_n = settings.MONTHLY_REPORT_TOP_N if top_n is None else top_n
    ranked = sorted(current.income_by_category.items(), key=lambda item: (-item[1], item[0]))
    top_categories = [CategoryTotal(name, round_money(total)) for name, total in ranked[:top_n]]

    prev_profit: Optional[Decimal] = None
    comparison: Optional[MonthComparison] = None
    if previous is not None and previous.tx_count > 0:
        prev_profit = round_money(previous.profit)
        delta = current.profit - previous.profit
        comparison = MonthComparison(
            profit_delta=round_money(delta),
            percent_change=percent_change(delta, previous.profit),
        )

    return MonthlyReportData(
        year=year,
        month=month,
        total_in=round_money(current.total_in),
        total_out=round_money(current.total_out),
        profit=round_money(current.profit),
        tx_count=current.tx_count,
        vat_collected=round_money(current.vat_collected),
        top_categories=top_categories,
        prev_month_profit=prev_profit,
        comparison=comparison,
    )


def format_monthly_report(data: MonthlyReportData, business_name: str) -> str:
    lines = [
        "*RELATÓRIU MENSAL*",
        f"*{business_name or 'Kaixa'}*",
        data.month_label_tl,
        DIVIDER,
        "",
        f"Osan Tama (Income): *{fmt_usd(data.total_in)}*",
        f"Osan Sai (Expenses): *{fmt_usd(data.total_out)}*",
        DIVIDER,
        f"*Lukru (Profit): {fmt_usd(data.profit)}*" + (" ⚠" if data.profit < ZERO else ""),
    ]

    if data.comparison is not None:
        delta = data.comparison.profit_delta
        pct = data.comparison.percent_change
        arrow = "↑" if delta >= ZERO else "↓"
        sign = "+" if delta >= ZERO else ""
        pct_sign = "+" if pct >= 0 else ""
        lines.append(f"{arrow} {sign}{fmt_usd(delta)} ({pct_sign}{pct}%) vs fulan liu ba")

    lines.extend(["", f"Total transasaun: {data.tx_count}"])

    if data.top_categories:
        lines.extend(["", DIVIDER, "*Kategoria Prinsipal:*"])
        for i, cat in enumerate(data.top_categories, start=1):
            label = REPORT_CATEGORY_LABELS.get(cat.category, cat.category)
            lines.append(f"{i}. {label}: {fmt_usd(cat.total)}")

    if data.vat_collected > ZERO:
        lines.extend(["", DIVIDER, f"VAT Koletadu: {fmt_usd(data.vat_collected)}"])

    lines.extend(["", DIVIDER, "_Relatóriu jera husi Kaixa_"])
    return "\n".join(lines)


@dataclass(frozen=True)
class MonthlyReport:
    data: MonthlyReportData
    text: str


class MonthlyReportService:
    """Builds the monthly summary from two ledger reads."""

    def __init__(self, reader: LedgerReader, tz: Optional[timezone] = None):
        self.reader = reader
        self.tz = tz or business_timezone()

    def _fetch_month(self, tenant_id: str, year: int, month: int) -> List[TransactionRecord]:
        start, end = month_bounds(year, month, self.tz)
        return self.reader.query(tenant_id, start, end)

    def generate(
        self,
        tenant_id: str,
        business_name: str,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> MonthlyReport:
        """
        Generate the report for a month (default: current month, business tz).

        A failure reading the current month propagates; a failure reading
        the previous month only drops the comparison.
        """
        today = local_today(self.tz)
        year = today.year if year is None else year
        month = today.month if month is None else month

        FilingPeriod.monthly(year, month)
        current = summarize_month(self._fetch_month(tenant_id, year, month))

        previous: Optional[MonthSummary] = None
        prev_year, prev_month = previous_month(year, month)
        try:
            previous = summarize_month(self._fetch_month(tenant_id, prev_year, prev_month))
        except LedgerQueryError as exc:
            logger.warning(
                "Skipping month comparison for tenant %s (%04d-%02d): %s",
                tenant_id, prev_year, prev_month, exc.message,
            )

        data = build_monthly_report(current, previous, year, month)
        metrics.monthly_report_record()
        logger.info("Generated monthly report tenant=%s month=%04d-%02d", tenant_id, year, month)
        return MonthlyReport(data=data, text=format_monthly_report(data, business_name))
