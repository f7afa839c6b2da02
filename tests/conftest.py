from __future__ import annotations

import os

os.environ.setdefault("ENV", "test")

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402
from itertools import count  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from vatledger.core.config import settings  # noqa: E402
from vatledger.db import session as db_session_module  # noqa: E402
from vatledger.db.base_class import Base  # noqa: E402
from vatledger.db.session import SessionLocal  # noqa: E402
from vatledger.models import ledger_models  # noqa: E402,F401 - registers tables
from vatledger.models.ledger import BusinessInfo, TransactionRecord  # noqa: E402

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")

DILI = timezone(timedelta(hours=9))

test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Ensure application code uses the test engine
settings.DATABASE_URL = TEST_DATABASE_URL  # type: ignore[attr-defined]
db_session_module.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh ledger table."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def business():
    return BusinessInfo(
        name="Loja Maubere",
        vat_reg_number="TL-123456",
        address="Rua de Colmera, Dili",
        phone="+670 7723 4567",
    )


_ids = count(1)


def make_record(
    direction="in",
    amount="110",
    net_amount=None,
    vat_rate="0",
    vat_amount="0",
    vat_category="none",
    timestamp=None,
    tenant_id="t1",
    **extra,
) -> TransactionRecord:
    """Build a TransactionRecord with sensible defaults for tests."""
    return TransactionRecord(
        id=extra.pop("id", f"tx-{next(_ids):05d}"),
        tenant_id=tenant_id,
        direction=direction,
        amount=Decimal(amount),
        net_amount=Decimal(net_amount if net_amount is not None else amount),
        vat_rate=Decimal(vat_rate),
        vat_amount=Decimal(vat_amount),
        vat_category=vat_category,
        timestamp=timestamp or datetime(2026, 2, 10, 12, 0, tzinfo=DILI),
        **extra,
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def feb_2026_ledger():
    """Sale $110 standard 10%, sale $50 exempt, purchase $55 standard 10%."""
    return [
        make_record("in", "110", "100", "10", "10", "standard", category="sales", id="sale-1"),
        make_record("in", "50", "50", "0", "0", "exempt", category="service", id="sale-2",
                    timestamp=datetime(2026, 2, 11, 9, 30, tzinfo=DILI)),
        make_record("out", "55", "50", "10", "5", "standard", category="stock", id="buy-1",
                    timestamp=datetime(2026, 2, 12, 15, 0, tzinfo=DILI)),
    ]
