"""
Ledger storage model.

The ledger is owned by upstream capture flows; this package only reads it.
The table mirrors ``TransactionRecord`` one column per field.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from vatledger.db.base_class import Base
from vatledger.models.ledger import VATCategory


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"
    __table_args__ = (
        Index("ix_ledger_transactions_tenant_timestamp", "tenant_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    direction: Mapped[str] = mapped_column(String(3), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    net_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    vat_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    vat_amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    vat_category: Mapped[str] = mapped_column(String(16), nullable=False, default=VATCategory.NONE.value)

    category: Mapped[str] = mapped_column(String(50), nullable=False, default="other")
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    receipt_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=utcnow)

    @validates("timestamp", "created_at", "updated_at")
    def _normalize_utc(self, key: str, value: dt.datetime | None) -> dt.datetime | None:
        # Store UTC so SQLite (which drops offsets) and Postgres compare alike
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(dt.timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<LedgerTransaction(id={self.id}, tenant_id={self.tenant_id}, direction={self.direction}, "
            f"amount={self.amount}, vat_category={self.vat_category}, timestamp={self.timestamp})>"
        )
