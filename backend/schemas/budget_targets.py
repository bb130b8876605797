from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional

class BudgetMonthTarget(BaseModel):
    month: int = Field(ge=1, le=12)
    target_revenue: Decimal = Field(ge=0)
    target_expenses: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None

class BudgetTargetCreate(BudgetMonthTarget):
    year: int = Field(gt=0)

class BudgetBulkUpdate(BaseModel):
    year: int = Field(gt=0)
    targets: List[BudgetMonthTarget]

class BudgetTargetRecord(BudgetTargetCreate):
    id: Optional[int] = None
    tenant_id: Optional[str] = None

    class Config:
        from_attributes = True
