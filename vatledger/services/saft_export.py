"""
SAF-T audit export.

Builds a Standard Audit File for Tax (Portuguese SAF-T layout adapted for
Timor-Leste: USD, country code TL) covering one fiscal year of a tenant's
ledger. The document is assembled line by line; every text value passes
through ``escape_xml``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from vatledger import metrics
from vatledger.core.config import settings
from vatledger.core.exceptions import FormattingError
from vatledger.models.ledger import BusinessInfo, Direction, TransactionRecord, VATCategory
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.tax_reporting.period_utils import business_timezone, fiscal_year_bounds, local_today, to_local
from vatledger.utils.money import ZERO, fmt_amount, fmt_rate

logger = logging.getLogger(__name__)

SAFT_NAMESPACE = "urn:OECD:StandardAuditFile-Tax:TL_1.0"
AUDIT_FILE_VERSION = "1.0"
TAX_TYPE = "IVA"
INVOICE_TYPE = "FS"  # simplified invoice (POS / retail)
INVOICE_STATUS = "N"  # normal
MIME_TYPE = "application/xml"

_XML_ENTITIES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
    # Parsers fold CR and CRLF to LF unless CR is a character reference
    ("\r", "&#13;"),
)

# Control characters XML 1.0 cannot carry, escaped or not
_XML_FORBIDDEN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def escape_xml(value: Optional[str]) -> str:
    """Escape the predefined XML entities (``&`` first) and carriage returns.

    Raises ``FormattingError`` for control characters XML 1.0 cannot represent.
    """
    if not value:
        return ""
    text = str(value)
    bad = _XML_FORBIDDEN.search(text)
    if bad:
        raise FormattingError(
            f"Character U+{ord(bad.group()):04X} cannot be written to XML", field="text"
        )
    for char, entity in _XML_ENTITIES:
        text = text.replace(char, entity)
    return text


@dataclass(frozen=True)
class TaxTableEntry:
    percentage: Decimal
    description: str


@dataclass(frozen=True)
class AuditExport:
    xml: str
    filename: str
    mime_type: str = MIME_TYPE


def _tax_description(record: TransactionRecord) -> str:
    category = record.vat_category
    if category is VATCategory.STANDARD:
        return "Standard Rate"
    if category is VATCategory.REDUCED:
        return "Reduced Rate"
    if category is VATCategory.ZERO:
        return "Zero Rate"
    if category is VATCategory.EXEMPT:
        return "Exempt"
    if category is VATCategory.NONE:
        return f"Rate {fmt_rate(record.vat_rate)}%" if record.vat_rate > ZERO else "No VAT"
    raise FormattingError(f"Unhandled VAT category {category!r}", field="vat_category")


def build_tax_table(records: Iterable[TransactionRecord]) -> List[TaxTableEntry]:
    """One entry per distinct VAT rate, the first record seen names it.

    Sorted ascending by rate; an empty ledger still yields ``0`` / ``No VAT``.
    """
    by_rate: dict[Decimal, str] = {}
    for record in records:
        if record.vat_rate in by_rate:
            continue
        by_rate[record.vat_rate] = _tax_description(record)
    if not by_rate:
        by_rate[ZERO] = "No VAT"
    return [TaxTableEntry(rate, by_rate[rate]) for rate in sorted(by_rate)]


def _sorted_records(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    return sorted(records, key=lambda r: (to_local(r.timestamp, timezone.utc), r.id))


def _header(business: BusinessInfo, year: int, start: date, end: date, created_on: date) -> List[str]:
    return [
        "  <Header>",
        f"    <AuditFileVersion>{AUDIT_FILE_VERSION}</AuditFileVersion>",
        f"    <CompanyID>{escape_xml(business.vat_reg_number)}</CompanyID>",
        f"    <TaxRegistrationNumber>{escape_xml(business.vat_reg_number)}</TaxRegistrationNumber>",
        f"    <CompanyName>{escape_xml(business.name)}</CompanyName>",
        "    <CompanyAddress>",
        f"      <AddressDetail>{escape_xml(business.address)}</AddressDetail>",
        f"      <City>{escape_xml(settings.BUSINESS_CITY)}</City>",
        f"      <Country>{escape_xml(settings.COUNTRY_CODE)}</Country>",
        "    </CompanyAddress>",
        f"    <FiscalYear>{year}</FiscalYear>",
        f"    <StartDate>{start.isoformat()}</StartDate>",
        f"    <EndDate>{end.isoformat()}</EndDate>",
        f"    <CurrencyCode>{escape_xml(settings.CURRENCY_CODE)}</CurrencyCode>",
        f"    <DateCreated>{created_on.isoformat()}</DateCreated>",
        "    <TaxEntity>Global</TaxEntity>",
        f"    <ProductCompanyTaxID>{escape_xml(settings.PRODUCT_COMPANY_TAX_ID)}</ProductCompanyTaxID>",
        f"    <SoftwareCertificateNumber>{escape_xml(settings.SOFTWARE_CERTIFICATE_NUMBER)}</SoftwareCertificateNumber>",
        f"    <ProductID>{escape_xml(settings.PRODUCT_ID)}</ProductID>",
        f"    <ProductVersion>{escape_xml(settings.PRODUCT_VERSION)}</ProductVersion>",
        "  </Header>",
    ]


def _master_files(tax_table: Sequence[TaxTableEntry]) -> List[str]:
    lines = ["  <MasterFiles>", "    <TaxTable>"]
    for entry in tax_table:
        lines.extend([
            "      <TaxTableEntry>",
            f"        <TaxType>{TAX_TYPE}</TaxType>",
            f"        <TaxCountryRegion>{escape_xml(settings.COUNTRY_CODE)}</TaxCountryRegion>",
            f"        <Description>{escape_xml(entry.description)}</Description>",
            f"        <TaxPercentage>{fmt_rate(entry.percentage)}</TaxPercentage>",
            "      </TaxTableEntry>",
        ])
    lines.extend(["    </TaxTable>", "  </MasterFiles>"])
    return lines


def _invoice(record: TransactionRecord, tz: timezone) -> List[str]:
    invoice_no = record.receipt_number or record.id
    # Sales credit revenue, purchases debit expense
    amount_tag = "CreditAmount" if record.direction is Direction.IN else "DebitAmount"
    description = f"{record.category}: {record.note}" if record.note else record.category
    return [
        "      <Invoice>",
        f"        <InvoiceNo>{escape_xml(invoice_no)}</InvoiceNo>",
        f"        <InvoiceStatus>{INVOICE_STATUS}</InvoiceStatus>",
        f"        <InvoiceDate>{to_local(record.timestamp, tz).date().isoformat()}</InvoiceDate>",
        f"        <InvoiceType>{INVOICE_TYPE}</InvoiceType>",
        f"        <SourceID>{escape_xml(record.created_by)}</SourceID>",
        "        <DocumentTotals>",
        f"          <TaxPayable>{fmt_amount(record.vat_amount)}</TaxPayable>",
        f"          <NetTotal>{fmt_amount(record.net_amount)}</NetTotal>",
        f"          <GrossTotal>{fmt_amount(record.amount)}</GrossTotal>",
        "        </DocumentTotals>",
        "        <Line>",
        "          <LineNumber>1</LineNumber>",
        f"          <{amount_tag}>{fmt_amount(record.net_amount)}</{amount_tag}>",
        "          <Tax>",
        f"            <TaxType>{TAX_TYPE}</TaxType>",
        f"            <TaxCountryRegion>{escape_xml(settings.COUNTRY_CODE)}</TaxCountryRegion>",
        f"            <TaxPercentage>{fmt_rate(record.vat_rate)}</TaxPercentage>",
        "          </Tax>",
        f"          <Description>{escape_xml(description)}</Description>",
        "        </Line>",
        "      </Invoice>",
    ]


def _totals(records: Sequence[TransactionRecord]) -> Tuple[Decimal, Decimal]:
    debit = sum((r.net_amount for r in records if r.direction is Direction.OUT), ZERO)
    credit = sum((r.net_amount for r in records if r.direction is Direction.IN), ZERO)
    return debit, credit


def _source_documents(records: Sequence[TransactionRecord], tz: timezone) -> List[str]:
    total_debit, total_credit = _totals(records)
    lines = [
        "  <SourceDocuments>",
        "    <SalesInvoices>",
        f"      <NumberOfEntries>{len(records)}</NumberOfEntries>",
        f"      <TotalDebit>{fmt_amount(total_debit)}</TotalDebit>",
        f"      <TotalCredit>{fmt_amount(total_credit)}</TotalCredit>",
    ]
    for record in records:
        lines.extend(_invoice(record, tz))
    lines.extend(["    </SalesInvoices>", "  </SourceDocuments>"])
    return lines


def generate_saft_xml(
    records: Iterable[TransactionRecord],
    business: BusinessInfo,
    year: int,
    created_on: Optional[date] = None,
    tz: Optional[timezone] = None,
) -> str:
    """
    Render the audit file for one fiscal year.

    Records are ordered by (timestamp, id) first, so the same ledger
    snapshot and ``created_on`` always give byte-identical output.
    """
    tz = tz or business_timezone()
    ordered = _sorted_records(records)
    start, end = fiscal_year_bounds(year, tz)
    created_on = created_on or local_today(tz)

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<AuditFile xmlns="{SAFT_NAMESPACE}">',
        *_header(business, year, start.date(), (end - timedelta(days=1)).date(), created_on),
        "",
        *_master_files(build_tax_table(ordered)),
        "",
        *_source_documents(ordered, tz),
        "</AuditFile>",
    ]
    return "\n".join(lines)


def saft_filename(year: int) -> str:
    return f"SAFT-{settings.COUNTRY_CODE}_{year}.xml"


class SAFTExportService:
    """Reads a fiscal year from the ledger and renders the audit file."""

    def __init__(self, reader: LedgerReader, tz: Optional[timezone] = None):
        self.reader = reader
        self.tz = tz or business_timezone()

    def export(
        self,
        tenant_id: str,
        business: BusinessInfo,
        year: int,
        created_on: Optional[date] = None,
    ) -> AuditExport:
        start, end = fiscal_year_bounds(year, self.tz)
        records = self.reader.query(tenant_id, start, end)
        xml = generate_saft_xml(records, business, year, created_on=created_on, tz=self.tz)
        metrics.saft_export_record()
        logger.info("Generated SAF-T export tenant=%s year=%s invoices=%d", tenant_id, year, len(records))
        return AuditExport(xml=xml, filename=saft_filename(year))
