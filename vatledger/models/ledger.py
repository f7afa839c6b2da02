"""
Ledger domain values.

Plain immutable values shared by the period resolver, aggregators and
document emitters:
- TransactionRecord: one captured sale or purchase (read-only here)
- FilingPeriod: a monthly or quarterly filing window
- BusinessInfo: identity printed on every document
- VATReturnData: the aggregated four-box return snapshot
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from vatledger.core.exceptions import FormattingError, InvalidPeriodError
from vatledger.utils.money import ZERO, amounts_match, to_decimal

EN_MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

TETUM_MONTHS = [
    "Janeiru", "Fevereiru", "Marsu", "Abril", "Maiu", "Juñu",
    "Jullu", "Agostu", "Setembru", "Outubru", "Novembru", "Dezembru",
]

# Year 1 has no previous month and underflows when shifted from UTC+9 to UTC.
MIN_YEAR = 2
MAX_YEAR = 9998


class Direction(str, Enum):
    """Money flow of a transaction."""
    IN = "in"      # sale / income
    OUT = "out"    # purchase / expense


class VATCategory(str, Enum):
    """VAT treatment of a transaction (closed set)."""
    STANDARD = "standard"   # normal rate
    REDUCED = "reduced"     # lower tiered rate
    ZERO = "zero"           # 0%, input VAT still claimable
    EXEMPT = "exempt"       # no VAT, no input credit
    NONE = "none"           # VAT not active

    @property
    def carries_vat(self) -> bool:
        return self in (VATCategory.STANDARD, VATCategory.REDUCED)


class FilingFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


@dataclass(frozen=True)
class FilingPeriod:
    """A monthly or quarterly filing window.

    Build with ``FilingPeriod.monthly(2026, 2)`` or
    ``FilingPeriod.quarterly(2025, 4)``; out-of-range values raise
    ``InvalidPeriodError``.
    """

    frequency: FilingFrequency
    year: int
    month: int | None = None
    quarter: int | None = None

    def __post_init__(self) -> None:
        try:
            frequency = FilingFrequency(self.frequency)
        except ValueError as exc:
            raise InvalidPeriodError(f"unknown frequency {self.frequency!r}", frequency=self.frequency) from exc
        object.__setattr__(self, "frequency", frequency)

        if not _is_int(self.year) or not MIN_YEAR <= self.year <= MAX_YEAR:
            raise InvalidPeriodError(
                f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {self.year!r}", year=self.year
            )

        if frequency is FilingFrequency.MONTHLY:
            if not _is_int(self.month) or not 1 <= self.month <= 12:
                raise InvalidPeriodError("monthly period requires month (1-12)", month=self.month)
            if self.quarter is not None:
                raise InvalidPeriodError("monthly period cannot carry a quarter", quarter=self.quarter)
        else:
            if not _is_int(self.quarter) or not 1 <= self.quarter <= 4:
                raise InvalidPeriodError("quarterly period requires quarter (1-4)", quarter=self.quarter)
            if self.month is not None:
                raise InvalidPeriodError("quarterly period cannot carry a month", month=self.month)

    @classmethod
    def monthly(cls, year: int, month: int) -> FilingPeriod:
        return cls(FilingFrequency.MONTHLY, year, month=month)

    @classmethod
    def quarterly(cls, year: int, quarter: int) -> FilingPeriod:
        return cls(FilingFrequency.QUARTERLY, year, quarter=quarter)

    @property
    def first_month(self) -> int:
        if self.frequency is FilingFrequency.MONTHLY:
            return self.month  # type: ignore[return-value]
        return (self.quarter - 1) * 3 + 1  # type: ignore[operator]

    @property
    def last_month(self) -> int:
        if self.frequency is FilingFrequency.MONTHLY:
            return self.month  # type: ignore[return-value]
        return self.quarter * 3  # type: ignore[operator]

    @property
    def tax_period(self) -> str:
        """Storage/display key: ``2026-02`` or ``2025-Q4``."""
        if self.frequency is FilingFrequency.MONTHLY:
            return f"{self.year:04d}-{self.month:02d}"
        return f"{self.year:04d}-Q{self.quarter}"

    @property
    def label(self) -> str:
        return self._label(EN_MONTHS)

    @property
    def label_tl(self) -> str:
        return self._label(TETUM_MONTHS)

    @property
    def frequency_label(self) -> str:
        if self.frequency is FilingFrequency.MONTHLY:
            return "Monthly / Mensal"
        return "Quarterly / Trimestral"

    def _label(self, names: list[str]) -> str:
        if self.frequency is FilingFrequency.MONTHLY:
            return f"{names[self.month - 1]} {self.year}"  # type: ignore[operator]
        return f"Q{self.quarter} {self.year} ({names[self.first_month - 1]}-{names[self.last_month - 1]})"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class BusinessInfo:
    """Business identity supplied by the settings collaborator."""

    name: str
    vat_reg_number: str = ""
    address: str = ""
    phone: str = ""


@dataclass(frozen=True)
class TransactionRecord:
    """A captured sale (``in``) or purchase (``out``).

    Amounts are VAT-inclusive ``amount`` = ``net_amount`` + ``vat_amount``.
    Records are append-only upstream and never mutated by this package.
    """

    id: str
    tenant_id: str
    direction: Direction
    amount: Decimal
    net_amount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal
    vat_category: VATCategory
    timestamp: dt.datetime
    category: str = "other"
    note: str = ""
    receipt_number: str | None = None
    created_by: str = ""
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "vat_category", VATCategory(self.vat_category))
        for name in ("amount", "net_amount", "vat_rate", "vat_amount"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    def check_invariants(self) -> None:
        """Raise ``FormattingError`` if the record's figures are inconsistent."""
        if not amounts_match(self.amount, self.net_amount + self.vat_amount):
            raise FormattingError(
                f"Transaction {self.id}: amount {self.amount} != net {self.net_amount} + VAT {self.vat_amount}",
                field="amount",
            )
        if self.vat_category in (VATCategory.EXEMPT, VATCategory.NONE) and self.vat_amount != ZERO:
            raise FormattingError(
                f"Transaction {self.id}: {self.vat_category.value} transaction carries VAT {self.vat_amount}",
                field="vat_amount",
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransactionRecord:
        """Build a record from a loosely-typed mapping (ledger rows, JSON).

        Missing net amount falls back to the gross amount; missing rate, VAT
        and category fall back to zero / ``none``. The direction (``direction``
        or ``type``) is required.
        """
        direction = data.get("direction") or data.get("type")
        if not direction:
            raise ValueError(f"Transaction {data.get('id')!r} has no direction")
        amount = to_decimal(data.get("amount"))
        return cls(
            id=str(data["id"]),
            tenant_id=str(data.get("tenant_id", "")),
            direction=Direction(direction),
            amount=amount,
            net_amount=to_decimal(data.get("net_amount"), default=amount),
            vat_rate=to_decimal(data.get("vat_rate")),
            vat_amount=to_decimal(data.get("vat_amount")),
            vat_category=VATCategory(data.get("vat_category") or VATCategory.NONE),
            timestamp=data["timestamp"],
            category=data.get("category") or "other",
            note=data.get("note") or "",
            receipt_number=data.get("receipt_number"),
            created_by=data.get("created_by") or "",
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class VATReturnData:
    """Aggregated VAT return for one tenant and filing period.

    Derived on demand from the ledger, never persisted. All money fields are
    already rounded to cents.
    """

    period: FilingPeriod

    # Box 1: Output VAT
    total_taxable_sales: Decimal
    standard_rate_vat_on_sales: Decimal
    reduced_rate_sales: Decimal
    zero_rated_sales: Decimal
    exempt_sales: Decimal
    total_output_vat: Decimal

    # Box 2: Input VAT
    total_taxable_purchases: Decimal
    vat_on_purchases: Decimal
    total_input_vat: Decimal

    # Box 3: Net VAT (negative = refundable)
    net_vat_payable: Decimal

    # Box 4: Summary
    total_transactions: int
    total_revenue: Decimal
    total_expenses: Decimal

    standard_rate: Decimal
    filing_deadline: dt.date

    @property
    def period_label(self) -> str:
        return self.period.label

    @property
    def period_label_tl(self) -> str:
        return self.period.label_tl

    @property
    def is_refund(self) -> bool:
        return self.net_vat_payable < ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "tax_period": self.period.tax_period,
            "frequency": self.period.frequency.value,
            "period_label": self.period_label,
            "period_label_tl": self.period_label_tl,
            "total_taxable_sales": float(self.total_taxable_sales),
            "standard_rate_vat_on_sales": float(self.standard_rate_vat_on_sales),
            "reduced_rate_sales": float(self.reduced_rate_sales),
            "zero_rated_sales": float(self.zero_rated_sales),
            "exempt_sales": float(self.exempt_sales),
            "total_output_vat": float(self.total_output_vat),
            "total_taxable_purchases": float(self.total_taxable_purchases),
            "vat_on_purchases": float(self.vat_on_purchases),
            "total_input_vat": float(self.total_input_vat),
            "net_vat_payable": float(self.net_vat_payable),
            "is_refund": self.is_refund,
            "total_transactions": self.total_transactions,
            "total_revenue": float(self.total_revenue),
            "total_expenses": float(self.total_expenses),
            "standard_rate": float(self.standard_rate),
            "filing_deadline": self.filing_deadline.isoformat(),
        }
