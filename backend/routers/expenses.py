from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime
from database import get_db
from models.expenses import ExpenseCategory
from schemas import expenses as schemas
from crud import expenses as crud
from routers.billing_reports import get_report_timezone
from utils.periods import current_year_month
from utils.tenancy import get_tenant_id, get_user_id, get_now

router = APIRouter(
    prefix="/billing/expenses",
    tags=["Expenses"],
)

@router.post("/", response_model=schemas.ExpenseRecord)
def create_expense(expense: schemas.ExpenseCreate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    return crud.create_expense(db=db, expense=expense, tenant_id=tenant_id, user_id=user_id)

@router.get("/", response_model=schemas.ExpenseList)
def read_expenses(
    year: Optional[int] = None,
    month: Optional[int] = None,
    category: Optional[ExpenseCategory] = None,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    tz=Depends(get_report_timezone),
    now: datetime = Depends(get_now),
):
    default_year, _ = current_year_month(now, tz)
    try:
        return crud.list_expenses(db=db, tenant_id=tenant_id, year=default_year if year is None else year, month=month, category=category, limit=limit, tz=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/{expense_id}", response_model=schemas.ExpenseRecord)
def read_expense(expense_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    db_expense = crud.get_expense(db=db, expense_id=expense_id, tenant_id=tenant_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense

@router.put("/{expense_id}", response_model=schemas.ExpenseRecord)
def update_expense(expense_id: int, expense: schemas.ExpenseUpdate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    db_expense = crud.update_expense(db=db, expense_id=expense_id, expense=expense, tenant_id=tenant_id, user_id=user_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense

@router.delete("/{expense_id}", response_model=schemas.ExpenseRecord)
def delete_expense(expense_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id), user_id: Optional[str] = Depends(get_user_id)):
    db_expense = crud.delete_expense(db=db, expense_id=expense_id, tenant_id=tenant_id, user_id=user_id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense
