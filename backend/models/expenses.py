from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, Boolean, Enum, Index
from database import Base
import enum
from models.audit_mixin import AuditMixin

class ExpenseCategory(enum.Enum):
    RENT = "rent"
    SALARY = "salary"
    SUPPLIES = "supplies"
    UTILITIES = "utilities"
    EQUIPMENT = "equipment"
    MAINTENANCE = "maintenance"
    MARKETING = "marketing"
    INSURANCE = "insurance"
    TAXES = "taxes"
    OTHER = "other"

class RecurringFrequency(enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

class Expense(Base, AuditMixin):
    __tablename__ = 'expenses'
    __table_args__ = (
        Index('ix_expenses_tenant_date', 'tenant_id', 'expense_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category = Column(Enum(ExpenseCategory, values_callable=lambda e: [m.value for m in e]), nullable=False, index=True)
    expense_date = Column(DateTime(timezone=True), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_frequency = Column(Enum(RecurringFrequency, values_callable=lambda e: [m.value for m in e]), nullable=True)
    vendor = Column(String, nullable=True)
    invoice_number = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
