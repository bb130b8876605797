import os
import tempfile

# The application reads its settings at import time, so point it at a throwaway
# SQLite database and log directory before anything from backend/ is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="clinic-billing-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'billing.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["REPORTING_TIMEZONE"] = "Asia/Kolkata"

import time
from datetime import datetime
from decimal import Decimal

import pytest
import pytz
from fastapi.testclient import TestClient

from schemas.budget_targets import BudgetTargetRecord
from schemas.expenses import ExpenseRecord
from schemas.receipts import LineItem, ReceiptRecord, ReceiptTotals
from models.expenses import ExpenseCategory
from models.receipts import PaymentMode
from utils.periods import get_timezone, to_local

IST = get_timezone("Asia/Kolkata")
TENANT = "clinic-1"
OTHER_TENANT = "clinic-2"
# 2024-03-20 12:00 IST
FIXED_NOW = datetime(2024, 3, 20, 6, 30, tzinfo=pytz.utc)


def ist(year, month, day, hour=10, minute=0):
    return IST.localize(datetime(year, month, day, hour, minute))


_sequence = iter(range(1, 1_000_000))


def receipt(amount, when, paid=True, mode=PaymentMode.CASH, services=None, discount=0):
    """Build a receipt record; `services` is a list of (description, amount) line items."""
    services = services or [("Consultation", amount + discount)]
    return ReceiptRecord(
        id=next(_sequence),
        receipt_number=f"RCP-{when.year}-{next(_sequence):04d}",
        receipt_date=when,
        subtotal=Decimal(amount + discount),
        discount_amount=Decimal(discount),
        total_amount=Decimal(amount),
        payment_mode=mode if paid else PaymentMode.UNPAID,
        is_paid=paid,
        patient_name="Asha Rao",
        line_items=[LineItem(description=name, amount=Decimal(value)) for name, value in services],
    )


def expense(amount, when, category=ExpenseCategory.RENT, description="Clinic rent"):
    return ExpenseRecord(
        id=next(_sequence),
        tenant_id=TENANT,
        description=description,
        amount=Decimal(amount),
        category=category,
        expense_date=when,
    )


def budget(year, month, target_revenue, target_expenses=None):
    return BudgetTargetRecord(
        tenant_id=TENANT,
        year=year,
        month=month,
        target_revenue=Decimal(target_revenue),
        target_expenses=None if target_expenses is None else Decimal(target_expenses),
    )


class InMemoryRecordStore:
    """List-backed record store with the same lookups as SessionRecordStore."""

    def __init__(self, receipts=(), expenses=(), budgets=(), tenant_id=TENANT):
        self.tenant_id = tenant_id
        self.receipts = list(receipts)
        self.expenses = list(expenses)
        self.budgets = list(budgets)
        self.calls = []

    def find_receipts(self, tenant_id, date_range):
        self.calls.append(("find_receipts", tenant_id, date_range))
        if tenant_id != self.tenant_id:
            return []
        return [r for r in self.receipts if date_range.contains(to_local(r.receipt_date, IST))]

    def find_receipt_totals(self, tenant_id):
        self.calls.append(("find_receipt_totals", tenant_id))
        if tenant_id != self.tenant_id:
            return ReceiptTotals()
        paid = [r for r in self.receipts if r.is_paid]
        return ReceiptTotals(
            total_receipts=len(self.receipts),
            paid_count=len(paid),
            collected=sum((r.total_amount for r in paid), Decimal(0)),
            pending=sum((r.total_amount for r in self.receipts if not r.is_paid), Decimal(0)),
        )

    def find_expenses(self, tenant_id, date_range):
        self.calls.append(("find_expenses", tenant_id, date_range))
        if tenant_id != self.tenant_id:
            return []
        return [e for e in self.expenses if date_range.contains(to_local(e.expense_date, IST))]

    def find_budget_target(self, tenant_id, year, month):
        self.calls.append(("find_budget_target", tenant_id, year, month))
        matches = [b for b in self.budgets if tenant_id == self.tenant_id and (b.year, b.month) == (year, month)]
        return matches[0] if matches else None

    def find_budget_targets(self, tenant_id, year):
        self.calls.append(("find_budget_targets", tenant_id, year))
        if tenant_id != self.tenant_id:
            return []
        return sorted((b for b in self.budgets if b.year == year), key=lambda b: b.month)


class SlowRecordStore(InMemoryRecordStore):
    def __init__(self, delay, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    def find_receipts(self, tenant_id, date_range):
        time.sleep(self.delay)
        return super().find_receipts(tenant_id, date_range)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def client():
    from database import Base, engine
    from main import app
    from utils.tenancy import get_now

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def headers():
    return {"X-Tenant-ID": TENANT, "X-User-ID": "reception@clinic-1"}
