from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vatledger import metrics
from vatledger.db.session import get_db

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz(db: Annotated[Session, Depends(get_db)]) -> dict[str, str]:
    """Basic liveness probe (ledger database reachable)."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail="Database connectivity check failed") from exc
    return {"status": "ok"}


@router.get("/metrics", tags=["metrics"])
def metrics_endpoint() -> Response:
    return Response(metrics.render_latest(), media_type=metrics.CONTENT_TYPE)
