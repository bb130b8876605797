"""
Read side of the billing record store.

The query functions take a Session like the rest of the crud package. SessionRecordStore
wraps them so the report fan-out can run each lookup on its own thread with its own
session, and hands back plain schema records that outlive the session.
"""

from typing import List, Optional
from sqlalchemy import case, func
from sqlalchemy.orm import Session, selectinload

from models.budget_targets import BudgetTarget
from models.expenses import Expense
from models.receipts import Receipt
from schemas.budget_targets import BudgetTargetRecord
from schemas.expenses import ExpenseRecord
from schemas.receipts import ReceiptRecord, ReceiptTotals
from database import SessionLocal
from utils.periods import DateRange


def find_receipts(db: Session, tenant_id: str, date_range: DateRange) -> List[ReceiptRecord]:
    receipts = (
        db.query(Receipt)
        .options(selectinload(Receipt.line_items))
        .filter(
            Receipt.tenant_id == tenant_id,
            Receipt.receipt_date >= date_range.start,
            Receipt.receipt_date <= date_range.end,
        )
        .order_by(Receipt.receipt_date, Receipt.id)
        .all()
    )
    return [ReceiptRecord.model_validate(receipt) for receipt in receipts]


def find_receipt_totals(db: Session, tenant_id: str) -> ReceiptTotals:
    """All-time receipt count, paid count and collected/pending sums in one grouped query."""
    paid_amount = case((Receipt.is_paid.is_(True), Receipt.total_amount), else_=0)
    unpaid_amount = case((Receipt.is_paid.is_(True), 0), else_=Receipt.total_amount)
    total_receipts, paid_count, collected, pending = db.query(
        func.count(Receipt.id),
        func.sum(case((Receipt.is_paid.is_(True), 1), else_=0)),
        func.sum(paid_amount),
        func.sum(unpaid_amount),
    ).filter(Receipt.tenant_id == tenant_id).one()
    # SUM over no rows is NULL
    return ReceiptTotals(
        total_receipts=total_receipts or 0,
        paid_count=paid_count or 0,
        collected=collected or 0,
        pending=pending or 0,
    )


def find_expenses(db: Session, tenant_id: str, date_range: DateRange) -> List[ExpenseRecord]:
    expenses = db.query(Expense).filter(
        Expense.tenant_id == tenant_id,
        Expense.expense_date >= date_range.start,
        Expense.expense_date <= date_range.end,
    ).order_by(Expense.expense_date, Expense.id).all()
    return [ExpenseRecord.model_validate(expense) for expense in expenses]


def find_budget_target(db: Session, tenant_id: str, year: int, month: int) -> Optional[BudgetTargetRecord]:
    target = db.query(BudgetTarget).filter(
        BudgetTarget.tenant_id == tenant_id,
        BudgetTarget.year == year,
        BudgetTarget.month == month,
    ).first()
    return BudgetTargetRecord.model_validate(target) if target else None


def find_budget_targets(db: Session, tenant_id: str, year: int) -> List[BudgetTargetRecord]:
    targets = db.query(BudgetTarget).filter(
        BudgetTarget.tenant_id == tenant_id,
        BudgetTarget.year == year,
    ).order_by(BudgetTarget.month).all()
    return [BudgetTargetRecord.model_validate(target) for target in targets]


class SessionRecordStore:
    """Record store that opens a short-lived session per lookup."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _run(self, query, *args):
        db = self.session_factory()
        try:
            return query(db, *args)
        finally:
            db.close()

    def find_receipts(self, tenant_id: str, date_range: DateRange) -> List[ReceiptRecord]:
        return self._run(find_receipts, tenant_id, date_range)

    def find_receipt_totals(self, tenant_id: str) -> ReceiptTotals:
        return self._run(find_receipt_totals, tenant_id)

    def find_expenses(self, tenant_id: str, date_range: DateRange) -> List[ExpenseRecord]:
        return self._run(find_expenses, tenant_id, date_range)

    def find_budget_target(self, tenant_id: str, year: int, month: int) -> Optional[BudgetTargetRecord]:
        return self._run(find_budget_target, tenant_id, year, month)

    def find_budget_targets(self, tenant_id: str, year: int) -> List[BudgetTargetRecord]:
        return self._run(find_budget_targets, tenant_id, year)


def get_record_store() -> SessionRecordStore:
    return SessionRecordStore(SessionLocal)
