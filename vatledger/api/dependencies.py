"""Request-scoped collaborators for the HTTP routes.

Each provider is a FastAPI dependency so tests can swap it through
``app.dependency_overrides``.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from vatledger.db.session import get_db
from vatledger.models.ledger import BusinessInfo
from vatledger.services.ledger_reader import LedgerReader, SQLAlchemyLedgerReader
from vatledger.services.receipt_sequencer import ReceiptSequencer, RedisCounterStore


def get_ledger_reader(db: Annotated[Session, Depends(get_db)]) -> LedgerReader:
    return SQLAlchemyLedgerReader(db)


def get_receipt_sequencer() -> ReceiptSequencer:
    return ReceiptSequencer(RedisCounterStore())


def get_business_info(
    business_name: str = Query(..., min_length=1, max_length=200),
    vat_reg_number: str = Query("", max_length=50),
    address: str = Query("", max_length=300),
    phone: str = Query("", max_length=30),
) -> BusinessInfo:
    """Business identity printed on documents (owned by the settings store)."""
    return BusinessInfo(name=business_name, vat_reg_number=vat_reg_number, address=address, phone=phone)
