from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
from database import get_db
from schemas.budget_targets import BudgetTargetCreate, BudgetBulkUpdate, BudgetTargetRecord
from crud import budget_targets as crud_budget_targets
from routers.billing_reports import get_report_timezone
from utils.periods import current_year_month
from utils.tenancy import get_tenant_id, get_user_id, get_now

router = APIRouter(
    prefix="/billing/budget",
    tags=["Budget Targets"],
)

@router.get("/", response_model=List[BudgetTargetRecord])
def read_budget_targets(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    default_year, _ = current_year_month(now, tz)
    return crud_budget_targets.get_budget_targets(db, tenant_id, default_year if year is None else year)

@router.post("/", response_model=BudgetTargetRecord)
def upsert_budget_target(target: BudgetTargetCreate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    return crud_budget_targets.upsert_budget_target(db, target, tenant_id, user_id=user_id)

@router.put("/", response_model=List[BudgetTargetRecord])
def bulk_upsert_budget_targets(bulk: BudgetBulkUpdate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    try:
        return crud_budget_targets.bulk_upsert_budget_targets(db, bulk, tenant_id, user_id=user_id)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
