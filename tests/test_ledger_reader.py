"""Tests for the SQLAlchemy-backed ledger reader."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from vatledger.core.exceptions import LedgerQueryError
from vatledger.models.ledger import Direction, FilingPeriod, TransactionRecord, VATCategory
from vatledger.models.ledger_models import LedgerTransaction
from vatledger.services.ledger_reader import SQLAlchemyLedgerReader
from vatledger.services.tax_reporting import resolve_period_bounds

DILI = timezone(timedelta(hours=9))


def _row(id, timestamp, tenant_id="t1", **overrides):
    data = {
        "id": id,
        "tenant_id": tenant_id,
        "direction": "in",
        "amount": Decimal("110.00"),
        "net_amount": Decimal("100.00"),
        "vat_rate": Decimal("10.00"),
        "vat_amount": Decimal("10.00"),
        "vat_category": "standard",
        "category": "sales",
        "timestamp": timestamp,
        "created_by": "user-1",
    }
    data.update(overrides)
    return LedgerTransaction(**data)


def test_reads_half_open_period_in_order(db_session):
    db_session.add_all([
        _row("b", datetime(2026, 2, 20, 9, 0, tzinfo=DILI)),
        _row("a", datetime(2026, 2, 1, 0, 0, tzinfo=DILI)),
        _row("edge-out", datetime(2026, 3, 1, 0, 0, tzinfo=DILI)),
        _row("before", datetime(2026, 1, 31, 23, 59, tzinfo=DILI)),
        _row("other-tenant", datetime(2026, 2, 5, tzinfo=DILI), tenant_id="t2"),
    ])
    db_session.commit()

    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    records = SQLAlchemyLedgerReader(db_session).query("t1", start, end)

    assert [r.id for r in records] == ["a", "b"]
    first = records[0]
    assert first.direction is Direction.IN
    assert first.vat_category is VATCategory.STANDARD
    assert first.amount == Decimal("110.00")
    assert first.timestamp == datetime(2026, 2, 1, 0, 0, tzinfo=DILI)
    assert first.timestamp.tzinfo is not None


def test_missing_vat_fields_use_defaults(db_session):
    db_session.add(_row(
        "legacy", datetime(2026, 2, 3, tzinfo=DILI),
        net_amount=None, vat_rate=None, vat_amount=None, vat_category="none", amount=Decimal("25.00"),
    ))
    db_session.commit()

    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    [record] = SQLAlchemyLedgerReader(db_session).query("t1", start, end)

    assert record.net_amount == Decimal("25.00")
    assert record.vat_amount == Decimal("0")
    assert record.vat_rate == Decimal("0")


def test_unreadable_row_raises_ledger_query_error(db_session):
    db_session.add(_row("bad", datetime(2026, 2, 3, tzinfo=DILI), vat_category="luxury"))
    db_session.commit()

    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    with pytest.raises(LedgerQueryError):
        SQLAlchemyLedgerReader(db_session).query("t1", start, end)


def test_database_failure_is_retryable_query_error():
    db = MagicMock()
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))

    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    with pytest.raises(LedgerQueryError) as exc_info:
        SQLAlchemyLedgerReader(db).query("t1", start, end)

    assert exc_info.value.retryable is True
    assert exc_info.value.code == "TAX320"
    assert exc_info.value.status_code == 503


def test_from_mapping_requires_direction():
    data = {"id": "x", "amount": "5", "timestamp": datetime(2026, 2, 3, tzinfo=DILI)}
    with pytest.raises(ValueError):
        TransactionRecord.from_mapping(data)

    assert TransactionRecord.from_mapping({**data, "type": "out"}).direction is Direction.OUT


def test_row_without_direction_raises_ledger_query_error(db_session):
    db_session.add(_row("blank", datetime(2026, 2, 3, tzinfo=DILI), direction=""))
    db_session.commit()

    start, end = resolve_period_bounds(FilingPeriod.monthly(2026, 2))
    with pytest.raises(LedgerQueryError):
        SQLAlchemyLedgerReader(db_session).query("t1", start, end)
