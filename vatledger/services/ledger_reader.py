"""Ledger Reader.

Fetches every transaction of a tenant whose timestamp lies in a half-open
``[start, end)`` window. Results are complete lists, ascending by
timestamp; any storage failure surfaces as ``LedgerQueryError``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vatledger import metrics
from vatledger.core.exceptions import LedgerQueryError
from vatledger.models.ledger import TransactionRecord
from vatledger.models.ledger_models import LedgerTransaction

logger = logging.getLogger(__name__)


class LedgerReader(Protocol):
    """Read-only access to a tenant's transactions."""

    def query(self, tenant_id: str, start: datetime, end: datetime) -> List[TransactionRecord]:  # pragma: no cover - protocol stub
        ...


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; the ledger stores UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _sort_key(record: TransactionRecord) -> tuple:
    return (_as_utc(record.timestamp), record.id)


def row_to_record(row: LedgerTransaction) -> TransactionRecord:
    """Map a storage row to an immutable ``TransactionRecord``."""
    return TransactionRecord.from_mapping(
        {
            "id": row.id,
            "tenant_id": row.tenant_id,
            "direction": row.direction,
            "amount": row.amount,
            "net_amount": row.net_amount,
            "vat_rate": row.vat_rate,
            "vat_amount": row.vat_amount,
            "vat_category": row.vat_category,
            "category": row.category,
            "note": row.note,
            "timestamp": _as_utc(row.timestamp),
            "receipt_number": row.receipt_number,
            "created_by": row.created_by,
            "created_at": _as_utc(row.created_at) if row.created_at else None,
            "updated_at": _as_utc(row.updated_at) if row.updated_at else None,
        }
    )


class SQLAlchemyLedgerReader:
    """Ledger reader backed by the ``ledger_transactions`` table."""

    def __init__(self, db: Session):
        self.db = db

    def query(self, tenant_id: str, start: datetime, end: datetime) -> List[TransactionRecord]:
        # Compare in UTC so SQLite (naive storage) and Postgres agree
        start_utc = _as_utc(start).astimezone(timezone.utc)
        end_utc = _as_utc(end).astimezone(timezone.utc)
        stmt = (
            select(LedgerTransaction)
            .where(
                LedgerTransaction.tenant_id == tenant_id,
                LedgerTransaction.timestamp >= start_utc,
                LedgerTransaction.timestamp < end_utc,
            )
            .order_by(LedgerTransaction.timestamp.asc(), LedgerTransaction.id.asc())
        )
        try:
            rows = self.db.execute(stmt).scalars().all()
            records = [row_to_record(row) for row in rows]
        except SQLAlchemyError as exc:
            metrics.ledger_query_failure()
            logger.error("Ledger query failed for tenant %s [%s, %s): %s", tenant_id, start, end, exc)
            raise LedgerQueryError(tenant_id, str(exc)) from exc
        except ValueError as exc:
            # Corrupt row (unknown direction/category, bad amount)
            metrics.ledger_query_failure()
            logger.error("Unreadable ledger row for tenant %s: %s", tenant_id, exc)
            raise LedgerQueryError(tenant_id, f"unreadable ledger row: {exc}") from exc

        logger.debug("Ledger query tenant=%s returned %d records", tenant_id, len(records))
        return records


class InMemoryLedgerReader:
    """List-backed ledger reader used for tests and embedding."""

    def __init__(self, records: Iterable[TransactionRecord] = ()):
        self._records = list(records)

    def add(self, record: TransactionRecord) -> None:
        self._records.append(record)

    def query(self, tenant_id: str, start: datetime, end: datetime) -> List[TransactionRecord]:
        start_utc, end_utc = _as_utc(start), _as_utc(end)
        matching = [
            r for r in self._records
            if r.tenant_id == tenant_id and start_utc <= _as_utc(r.timestamp) < end_utc
        ]
        return sorted(matching, key=_sort_key)
