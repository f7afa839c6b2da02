"""
VAT Return Routes.

Monthly and quarterly returns for a tenant, as JSON figures plus the text
form, or as the semantic HTML document for PDF rendering.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from vatledger.api.dependencies import get_business_info, get_ledger_reader
from vatledger.api.schemas import VATReturnOut
from vatledger.models.ledger import BusinessInfo, FilingPeriod
from vatledger.services.formatters.vat_return import render_vat_return_html
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.vat_service import VATService

router = APIRouter(prefix="/tenants/{tenant_id}/vat/returns")


def _return_out(service: VATService, tenant_id: str, business: BusinessInfo, period: FilingPeriod) -> dict:
    result = service.generate_vat_return(tenant_id, business, period)
    return {"figures": result.data.to_dict(), "text": result.text}


@router.get("/monthly/{year}/{month}", response_model=VATReturnOut)
def monthly_vat_return(
    tenant_id: str,
    year: int,
    month: int,
    business: Annotated[BusinessInfo, Depends(get_business_info)],
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
):
    """VAT return for one calendar month (business timezone)."""
    return _return_out(VATService(reader), tenant_id, business, FilingPeriod.monthly(year, month))


@router.get("/quarterly/{year}/{quarter}", response_model=VATReturnOut)
def quarterly_vat_return(
    tenant_id: str,
    year: int,
    quarter: int,
    business: Annotated[BusinessInfo, Depends(get_business_info)],
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
):
    """VAT return for Q1-Q4 of a calendar year."""
    return _return_out(VATService(reader), tenant_id, business, FilingPeriod.quarterly(year, quarter))


@router.get("/monthly/{year}/{month}/html", response_class=HTMLResponse)
def monthly_vat_return_html(
    tenant_id: str,
    year: int,
    month: int,
    business: Annotated[BusinessInfo, Depends(get_business_info)],
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
):
    data = VATService(reader).calculate_return(tenant_id, FilingPeriod.monthly(year, month))
    return HTMLResponse(render_vat_return_html(data, business))


@router.get("/quarterly/{year}/{quarter}/html", response_class=HTMLResponse)
def quarterly_vat_return_html(
    tenant_id: str,
    year: int,
    quarter: int,
    business: Annotated[BusinessInfo, Depends(get_business_info)],
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
):
    data = VATService(reader).calculate_return(tenant_id, FilingPeriod.quarterly(year, quarter))
    return HTMLResponse(render_vat_return_html(data, business))
