"""HTTP route tests for the reporting API."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock
import xml.etree.ElementTree as ET

import pytest
import redis
from fastapi.testclient import TestClient

from vatledger.api.dependencies import get_receipt_sequencer
from vatledger.api.main import app
from vatledger.models.ledger_models import LedgerTransaction
from vatledger.services.receipt_sequencer import InMemoryCounterStore, ReceiptSequencer, RedisCounterStore

DILI = timezone(timedelta(hours=9))
BUSINESS = {"business_name": "Loja Maubere", "vat_reg_number": "TL-123456"}


@pytest.fixture
def client():
    """Provide a FastAPI TestClient bound to the application."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded_ledger(db_session):
    rows = [
        ("sale-1", "in", "110", "100", "10", "10", "standard", "sales", datetime(2026, 2, 10, 12, tzinfo=DILI)),
        ("sale-2", "in", "50", "50", "0", "0", "exempt", "service", datetime(2026, 2, 11, 9, tzinfo=DILI)),
        ("buy-1", "out", "55", "50", "10", "5", "standard", "stock", datetime(2026, 2, 12, 15, tzinfo=DILI)),
        ("jan-1", "in", "40", "40", "0", "0", "none", "sales", datetime(2026, 1, 20, 8, tzinfo=DILI)),
    ]
    for id_, direction, amount, net, rate, vat, cat, category, ts in rows:
        db_session.add(LedgerTransaction(
            id=id_, tenant_id="t1", direction=direction, amount=Decimal(amount), net_amount=Decimal(net),
            vat_rate=Decimal(rate), vat_amount=Decimal(vat), vat_category=cat, category=category,
            timestamp=ts, created_by="owner",
        ))
    db_session.commit()


def test_monthly_vat_return(client, seeded_ledger):
    resp = client.get("/tenants/t1/vat/returns/monthly/2026/2", params=BUSINESS)
    assert resp.status_code == 200
    body = resp.json()

    figures = body["figures"]
    assert figures["tax_period"] == "2026-02"
    assert figures["total_taxable_sales"] == 100.0
    assert figures["total_output_vat"] == 10.0
    assert figures["exempt_sales"] == 50.0
    assert figures["total_input_vat"] == 5.0
    assert figures["net_vat_payable"] == 5.0
    assert figures["total_transactions"] == 3
    assert figures["filing_deadline"] == "2026-03-15"
    assert "NET VAT PAYABLE:" in body["text"]


def test_quarterly_vat_return(client, seeded_ledger):
    resp = client.get("/tenants/t1/vat/returns/quarterly/2026/1", params=BUSINESS)
    assert resp.status_code == 200
    figures = resp.json()["figures"]
    assert figures["tax_period"] == "2026-Q1"
    assert figures["total_transactions"] == 4
    assert figures["filing_deadline"] == "2026-04-15"


def test_vat_return_html(client, seeded_ledger):
    resp = client.get("/tenants/t1/vat/returns/monthly/2026/2/html", params=BUSINESS)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Loja Maubere" in resp.text
    assert "$100.00" in resp.text


def test_invalid_month_is_bad_request(client):
    resp = client.get("/tenants/t1/vat/returns/monthly/2026/13", params=BUSINESS)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "TAX310"


def test_invalid_quarter_is_bad_request(client):
    resp = client.get("/tenants/t1/vat/returns/quarterly/2026/5/html", params=BUSINESS)
    assert resp.status_code == 400


def test_business_name_required(client):
    resp = client.get("/tenants/t1/vat/returns/monthly/2026/2")
    assert resp.status_code == 422


def test_saft_download(client, seeded_ledger):
    resp = client.get("/tenants/t1/saft/2026", params=BUSINESS)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert 'filename="SAFT-TL_2026.xml"' in resp.headers["content-disposition"]

    root = ET.fromstring(resp.content)
    ns = {"s": "urn:OECD:StandardAuditFile-Tax:TL_1.0"}
    assert root.find("s:SourceDocuments/s:SalesInvoices/s:NumberOfEntries", ns).text == "4"


def test_monthly_report(client, seeded_ledger):
    resp = client.get("/tenants/t1/reports/monthly", params={"business_name": "Loja", "year": 2026, "month": 2})
    assert resp.status_code == 200
    body = resp.json()
    assert body["figures"]["total_in"] == 160.0
    assert body["figures"]["prev_month_profit"] == 40.0
    assert body["figures"]["comparison"]["percent_change"] == 163
    assert body["text"].startswith("*RELATÓRIU MENSAL*")


def test_next_receipt_number(client):
    store = InMemoryCounterStore()
    app.dependency_overrides[get_receipt_sequencer] = lambda: ReceiptSequencer(store)

    first = client.post("/tenants/t1/receipts/next").json()["receipt_number"]
    second = client.post("/tenants/t1/receipts/next").json()["receipt_number"]

    assert first.startswith("REC-") and first.endswith("-000001")
    assert second.endswith("-000002")


def test_receipt_sequencer_failure_is_service_unavailable(client):
    redis_client = MagicMock()
    redis_client.incr.side_effect = redis.TimeoutError("timed out")
    app.dependency_overrides[get_receipt_sequencer] = lambda: ReceiptSequencer(RedisCounterStore(client=redis_client))

    resp = client.post("/tenants/t1/receipts/next")

    assert resp.status_code == 503
    error = resp.json()["error"]
    assert error["code"] == "TAX330"
    assert error["retryable"] is False
    assert redis_client.incr.call_count == 1


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_metrics_endpoint_available(client, seeded_ledger):
    client.get("/tenants/t1/vat/returns/monthly/2026/2", params=BUSINESS)
    resp = client.get("/metrics")
    assert resp.status_code == 200
    text = resp.text
    assert "vat_returns_computed_total" in text
    assert "receipt_numbers_issued_total" in text
    assert "saft_exports_total" in text
    assert 'vat_return_compute_seconds_bucket{le="0.5"}' in text
