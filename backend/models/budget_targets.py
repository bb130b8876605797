from sqlalchemy import Column, Integer, String, Text, Numeric, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

class BudgetTarget(Base, TimestampMixin):
    __tablename__ = "budget_targets"
    __table_args__ = (UniqueConstraint('tenant_id', 'year', 'month', name='_tenant_year_month_budget_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    target_revenue = Column(Numeric(12, 2), nullable=False)
    target_expenses = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)
