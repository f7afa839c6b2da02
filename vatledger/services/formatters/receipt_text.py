"""Plain-text receipts for chat sharing.

Bold/italic markers (``*``/``_``) follow WhatsApp formatting.
"""
from __future__ import annotations

import re
from datetime import timezone
from typing import Optional
from urllib.parse import quote

from vatledger.models.ledger import BusinessInfo, Direction, TransactionRecord
from vatledger.services.tax_reporting.period_utils import to_local
from vatledger.utils.money import ZERO, fmt_rate, fmt_usd

DIVIDER = "─" * 20

CATEGORY_LABELS = {
    "sales": "Venda",
    "service": "Servisu",
    "payment_received": "Pagamentu simu",
    "other_income": "Rendimentu seluk",
    "stock": "Estoke",
    "rent": "Alugel",
    "supplies": "Fornese",
    "salary": "Saláriu",
    "transport": "Transporte",
    "food": "Hahan",
    "other_expense": "Despeza seluk",
}

_PHONE_CHARS = re.compile(r"[^0-9+]")


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def generate_text_receipt(
    record: TransactionRecord,
    business: BusinessInfo,
    receipt_number: Optional[str] = None,
    tz: Optional[timezone] = None,
) -> str:
    """Render one transaction as a text receipt.

    Date and time are shown in the business timezone. The VAT breakdown is
    printed only when the transaction carries VAT.
    """
    local = to_local(record.timestamp, tz)
    lines = []

    if business.name:
        lines.append(f"*{business.name}*")
    if business.address:
        lines.append(business.address)
    if business.phone:
        lines.append(f"Tel: {business.phone}")
    if business.vat_reg_number:
        lines.append(f"VAT: {business.vat_reg_number}")
    lines.append(DIVIDER)

    if receipt_number:
        lines.append(f"No: {receipt_number}")
    lines.append(f"Data: {local.strftime('%d/%m/%Y')}")
    lines.append(f"Oras: {local.strftime('%H:%M')}")
    lines.append(DIVIDER)

    lines.append("Tipu: OSAN TAMA" if record.direction is Direction.IN else "Tipu: OSAN SAI")
    lines.append(f"Kategoria: {category_label(record.category)}")
    if record.note:
        lines.append(f"Nota: {record.note}")
    lines.append(DIVIDER)

    if record.vat_amount > ZERO:
        lines.append(f"Subtotal: {fmt_usd(record.net_amount)}")
        lines.append(f"VAT {fmt_rate(record.vat_rate)}%: {fmt_usd(record.vat_amount)}")
    lines.append(f"*TOTAL: {fmt_usd(record.amount)}*")
    lines.append(DIVIDER)

    lines.append("Obrigadu barak!")
    lines.append("_Powered by Kaixa_")
    return "\n".join(lines)


def whatsapp_share_url(text: str, phone: Optional[str] = None) -> str:
    """Deep link that opens WhatsApp with *text* prefilled."""
    encoded = quote(text, safe="-_.!~*'()")
    if phone:
        return f"whatsapp://send?phone={_PHONE_CHARS.sub('', phone)}&text={encoded}"
    return f"whatsapp://send?text={encoded}"
