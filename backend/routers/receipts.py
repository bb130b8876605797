from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
import logging

from database import get_db
from schemas.receipts import ReceiptCreate, ReceiptRecord, OutstandingReceipts, MarkReceiptsPaid, MarkReceiptsPaidResult
from crud import receipts as crud_receipts
from routers.billing_reports import get_report_timezone
from utils.tenancy import get_tenant_id, get_user_id, get_now

router = APIRouter(tags=["Receipts"])
logger = logging.getLogger(__name__)

@router.post("/receipts/", response_model=ReceiptRecord, status_code=status.HTTP_201_CREATED)
def create_receipt(
    receipt: ReceiptCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: Optional[str] = Depends(get_user_id),
    tz=Depends(get_report_timezone),
):
    try:
        return crud_receipts.create_receipt(db, receipt, tenant_id, user_id=user_id, tz=tz)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

@router.get("/billing/outstanding", response_model=OutstandingReceipts)
def read_outstanding_receipts(
    limit: int = Query(100, ge=1, le=1000),
    sort_by: str = Query("date", pattern="^(date|amount|patient)$"),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    return crud_receipts.get_outstanding_receipts(db, tenant_id, now, limit=limit, sort_by=sort_by, tz=tz)

@router.patch("/billing/outstanding", response_model=MarkReceiptsPaidResult)
def mark_receipts_paid(
    request: MarkReceiptsPaid,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: Optional[str] = Depends(get_user_id),
):
    try:
        modified = crud_receipts.mark_receipts_paid(db, request, tenant_id, user_id=user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return MarkReceiptsPaidResult(success=True, modified_count=modified)
