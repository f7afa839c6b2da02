"""Metrics facade.

Service code should ONLY call the semantic helpers here so the backend can
change freely.

Metrics:
- vat_returns_computed_total        VAT returns aggregated, by frequency
- vat_return_compute_seconds        Ledger read + aggregation latency
- receipt_numbers_issued_total      Receipt numbers handed out
- receipt_sequencer_failures_total  Failed or ambiguous counter increments
- ledger_query_failures_total       Ledger reads that raised
- saft_exports_total                Audit XML exports generated
- monthly_reports_total             Monthly summaries generated
"""

from __future__ import annotations

import logging

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

logger = logging.getLogger("metrics")

_VAT_RETURNS = Counter("vat_returns_computed_total", "VAT returns aggregated", ["frequency"])
_VAT_RETURN_LATENCY = Histogram(
    "vat_return_compute_seconds",
    "Ledger read plus aggregation latency for a VAT return",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10),
)
_RECEIPTS_ISSUED = Counter("receipt_numbers_issued_total", "Receipt numbers issued")
_SEQUENCER_FAILURES = Counter(
    "receipt_sequencer_failures_total", "Failed or ambiguous receipt counter increments"
)
_LEDGER_QUERY_FAILURES = Counter("ledger_query_failures_total", "Ledger reads that failed")
_SAFT_EXPORTS = Counter("saft_exports_total", "Audit XML exports generated")
_MONTHLY_REPORTS = Counter("monthly_reports_total", "Monthly summaries generated")

CONTENT_TYPE = CONTENT_TYPE_LATEST


def vat_return_record(frequency: str, seconds: float) -> None:
    _VAT_RETURNS.labels(frequency=frequency).inc()
    _VAT_RETURN_LATENCY.observe(seconds)


def receipt_number_issued() -> None:
    _RECEIPTS_ISSUED.inc()


def receipt_sequencer_failure() -> None:
    _SEQUENCER_FAILURES.inc()


def ledger_query_failure() -> None:
    _LEDGER_QUERY_FAILURES.inc()


def saft_export_record() -> None:
    _SAFT_EXPORTS.inc()


def monthly_report_record() -> None:
    _MONTHLY_REPORTS.inc()


def render_latest() -> bytes:
    return generate_latest()
