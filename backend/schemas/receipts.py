from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from models.receipts import PaymentMode

class LineItem(BaseModel):
    description: str
    amount: Decimal = Field(ge=0)

    class Config:
        from_attributes = True


class ReceiptCreate(BaseModel):
    receipt_date: datetime
    patient_name: str
    patient_phone: Optional[str] = None
    line_items: List[LineItem] = Field(min_length=1)
    discount_amount: Decimal = Field(default=Decimal(0), ge=0)
    discount_reason: Optional[str] = None
    payment_mode: Optional[PaymentMode] = None
    is_paid: bool = False
    notes: Optional[str] = None


class ReceiptRecord(BaseModel):
    """Read-only view of a receipt as the reporting engine sees it."""
    id: Optional[int] = None
    receipt_number: str
    receipt_date: datetime
    subtotal: Decimal
    discount_amount: Decimal = Decimal(0)
    total_amount: Decimal
    payment_mode: Optional[PaymentMode] = None
    is_paid: bool
    patient_name: str
    patient_phone: Optional[str] = None
    line_items: List[LineItem] = []

    class Config:
        from_attributes = True


class OutstandingReceipt(ReceiptRecord):
    days_overdue: int


class OutstandingAgeGroups(BaseModel):
    today: int = 0
    this_week: int = 0
    this_month: int = 0
    older: int = 0


class OutstandingSummary(BaseModel):
    total_count: int
    total_pending: Decimal
    oldest_receipt_date: Optional[datetime] = None
    age_groups: OutstandingAgeGroups


class OutstandingReceipts(BaseModel):
    receipts: List[OutstandingReceipt]
    summary: OutstandingSummary


class MarkReceiptsPaid(BaseModel):
    receipt_ids: List[int] = Field(min_length=1)
    payment_mode: Optional[PaymentMode] = None


class MarkReceiptsPaidResult(BaseModel):
    success: bool
    modified_count: int


class ReceiptTotals(BaseModel):
    """Receipt counts and sums computed by the database rather than from loaded rows."""
    total_receipts: int = 0
    paid_count: int = 0
    collected: Decimal = Decimal(0)
    pending: Decimal = Decimal(0)
