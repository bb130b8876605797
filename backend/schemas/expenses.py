from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from models.expenses import ExpenseCategory, RecurringFrequency
from schemas.billing_reports import ExpenseSummary

class ExpenseBase(BaseModel):
    description: str
    amount: Decimal = Field(gt=0)
    category: ExpenseCategory
    expense_date: datetime
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    vendor: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(ExpenseBase):
    pass

class ExpenseRecord(ExpenseBase):
    id: Optional[int] = None
    tenant_id: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True

class ExpenseList(BaseModel):
    expenses: List[ExpenseRecord]
    summary: ExpenseSummary
