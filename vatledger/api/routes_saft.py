from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from fastapi.responses import Response

from vatledger.api.dependencies import get_business_info, get_ledger_reader
from vatledger.models.ledger import BusinessInfo
from vatledger.services.ledger_reader import LedgerReader
from vatledger.services.saft_export import SAFTExportService

router = APIRouter()


@router.get("/tenants/{tenant_id}/saft/{year}")
def download_saft(
    tenant_id: str,
    business: Annotated[BusinessInfo, Depends(get_business_info)],
    reader: Annotated[LedgerReader, Depends(get_ledger_reader)],
    year: int = Path(..., ge=1, le=9998),
) -> Response:
    """SAF-T audit file for one fiscal year, as a download."""
    export = SAFTExportService(reader).export(tenant_id, business, year)
    return Response(
        content=export.xml,
        media_type=export.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
