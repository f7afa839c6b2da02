from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from vatledger.api.dependencies import get_ledger_reader
from vatledger.api.schemas import MonthlyReportOut
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.monthly_report_service import MonthlyReportService

router = APIRouter()


@router.get("/tenants/{tenant_id}/reports/monthly", response_model=MonthlyReportOut)
def monthly_report(
    tenant_id: str,
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
    business_name: str = Query("", max_length=200),
    year: int | None = Query(None),
    month: int | None = Query(None),
):
    """Monthly income/expense summary; defaults to the current month."""
    report = MonthlyReportService(reader).generate(tenant_id, business_name, year=year, month=month)
    return {"figures": report.data.to_dict(), "text": report.text}
