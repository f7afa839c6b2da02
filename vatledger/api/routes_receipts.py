from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from vatledger.api.dependencies import get_receipt_sequencer
from vatledger.api.schemas import ReceiptNumberOut
from vatledger.services.receipt_sequencer import ReceiptSequencer

router = APIRouter()


@router.post("/tenants/{tenant_id}/receipts/next", response_model=ReceiptNumberOut)
def next_receipt_number(
    tenant_id: str,
    sequencer: Annotated[ReceiptSequencer, Depends(get_receipt_sequencer)],
):
    """Allocate the next receipt number. Counter failures return 503 and must not be retried blindly."""
    return {"receipt_number": sequencer.next_receipt_number(tenant_id)}
