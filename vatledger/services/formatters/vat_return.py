"""VAT return document rendering.

Both forms of the return, the fixed-width text ledger and the semantic HTML
document handed to the PDF renderer, are built from the same box model
(``build_vat_return_boxes``), so they always show identical figures.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from vatledger.core.config import settings
from vatledger.core.exceptions import FormattingError
from vatledger.models.ledger import BusinessInfo, VATReturnData
from vatledger.services.tax_reporting.period_utils import local_today
from vatledger.utils.money import fmt_rate, fmt_usd

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates"
LINE_WIDTH = 39
LABEL_WIDTH = 37

_MONEY_FIELDS = (
    "total_taxable_sales",
    "standard_rate_vat_on_sales",
    "reduced_rate_sales",
    "zero_rated_sales",
    "exempt_sales",
    "total_output_vat",
    "total_taxable_purchases",
    "vat_on_purchases",
    "total_input_vat",
    "net_vat_payable",
    "total_revenue",
    "total_expenses",
)

_jinja = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)


@dataclass(frozen=True)
class BoxRow:
    label: str
    value: str
    is_total: bool = False


@dataclass(frozen=True)
class ReturnBox:
    key: str
    title: str
    rows: List[BoxRow]



def _check_complete(data: VATReturnData) -> None:
    for name in _MONEY_FIELDS:
        value = getattr(data, name, None)
        if not isinstance(value, Decimal) or not value.is_finite():
            raise FormattingError(f"VAT return field {name} is missing or not a finite amount", field=name)
    if not isinstance(data.standard_rate, Decimal) or not data.standard_rate.is_finite():
        raise FormattingError("VAT return has no standard rate", field="standard_rate")
    if data.filing_deadline is None:
        raise FormattingError("VAT return has no filing deadline", field="filing_deadline")


def net_vat_label(data: VATReturnData) -> str:
    return "NET VAT REFUNDABLE" if data.is_refund else "NET VAT PAYABLE"


def fmt_deadline(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def build_vat_return_boxes(data: VATReturnData) -> List[ReturnBox]:
    """The four labelled boxes of the return, values already formatted."""
    _check_complete(data)
    return [
        ReturnBox(
            key="output",
            title="BOX 1: OUTPUT VAT (VAT iha Vendas)",
            rows=[
                BoxRow("1a. Total Taxable Sales (net):", fmt_usd(data.total_taxable_sales)),
                BoxRow(f"1b. Standard Rate VAT ({fmt_rate(data.standard_rate)}%):", fmt_usd(data.standard_rate_vat_on_sales)),
                BoxRow("1c. Reduced Rate Sales:", fmt_usd(data.reduced_rate_sales)),
                BoxRow("1d. Zero-Rated Sales:", fmt_usd(data.zero_rated_sales)),
                BoxRow("1e. Exempt Sales:", fmt_usd(data.exempt_sales)),
                BoxRow("1f. TOTAL OUTPUT VAT:", fmt_usd(data.total_output_vat), is_total=True),
            ],
        ),
        ReturnBox(
            key="input",
            title="BOX 2: INPUT VAT (VAT iha Kompras)",
            rows=[
                BoxRow("2a. Total Taxable Purchases (net):", fmt_usd(data.total_taxable_purchases)),
                BoxRow("2b. VAT on Purchases:", fmt_usd(data.vat_on_purchases)),
                BoxRow("2c. TOTAL INPUT VAT:", fmt_usd(data.total_input_vat), is_total=True),
            ],
        ),
        ReturnBox(
            key="net",
            title="BOX 3: NET VAT (VAT atu Selu)",
            rows=[
                BoxRow("3a. Output VAT (Box 1f):", fmt_usd(data.total_output_vat)),
                BoxRow("3b. Less Input VAT (Box 2c):", fmt_usd(data.total_input_vat)),
                BoxRow(f"3c. {net_vat_label(data)}:", fmt_usd(abs(data.net_vat_payable)), is_total=True),
            ],
        ),
        ReturnBox(
            key="summary",
            title="BOX 4: SUMMARY",
            rows=[
                BoxRow("Total Transactions:", str(data.total_transactions)),
                BoxRow("Total Revenue:", fmt_usd(data.total_revenue)),
                BoxRow("Total Expenses:", fmt_usd(data.total_expenses)),
            ],
        ),
    ]


def _pad(label: str, value: str, width: int = LABEL_WIDTH) -> str:
    space = max(1, width - len(label) - len(value))
    return label + " " * space + value


def format_vat_return_text(
    data: VATReturnData,
    business: BusinessInfo,
    today: Optional[date] = None,
) -> str:
    """Render the return as a fixed-width text form for sharing or printing."""
    boxes = build_vat_return_boxes(data)
    today = today or local_today()
    heavy = "═" * LINE_WIDTH
    light = "─" * LINE_WIDTH

    lines: List[str] = [
        "",
        heavy,
        "   REPUBLICA DEMOCRATICA DE TIMOR-LESTE",
        "   DIRESAUN GERAL FINANSAS E IMPOSTU",
        "   DEKLARASAUN VAT / VAT RETURN",
        heavy,
        "",
        "INFORMASAUN NEGOSIU / BUSINESS INFORMATION",
        light,
        f"Business Name:    {business.name}",
        f"VAT Reg. No:      {business.vat_reg_number}",
        f"Address:          {business.address}",
        f"Phone:            {business.phone}",
        f"Filing Period:    {data.period_label}",
        f"                  {data.period_label_tl}",
        f"Filing Frequency: {data.period.frequency_label}",
    ]

    for box in boxes:
        lines.append("")
        lines.append(box.title)
        lines.append(light)
        lines.extend(_pad(row.label, row.value) for row in box.rows)
        if box.key == "net" and data.is_refund:
            lines.append("    [REFUND / REEMBOLSU]")

    lines.extend([
        "",
        f"DEADLINE: {fmt_deadline(data.filing_deadline)}",
        light,
        f"Prepared by: {settings.PREPARED_BY}",
        f"Date: {today.strftime('%d/%m/%Y')}",
        "",
    ])
    return "\n".join(lines)


def render_vat_return_html(
    data: VATReturnData,
    business: BusinessInfo,
    today: Optional[date] = None,
) -> str:
    """Render the return as a semantic HTML document for the PDF renderer."""
    boxes = build_vat_return_boxes(data)
    today = today or local_today()
    template = _jinja.get_template("vat_return.html")
    html = template.render(
        business=business,
        data=data,
        boxes=boxes,
        net_label=net_vat_label(data),
        net_amount=fmt_usd(abs(data.net_vat_payable)),
        deadline=fmt_deadline(data.filing_deadline),
        prepared_by=settings.PREPARED_BY,
        today=today.strftime("%d %B %Y"),
    )
    logger.debug("Rendered VAT return HTML for %s (%d bytes)", data.period.tax_period, len(html))
    return html
