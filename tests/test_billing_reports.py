import asyncio
import threading
import time
from datetime import date, datetime
from decimal import Decimal

import pytest
import pytz

from crud import billing_reports
from crud.billing_reports import ReportTimeoutError, compute_analytics, compute_overview, compute_report, flatten_for_export
from models.expenses import ExpenseCategory
from models.receipts import PaymentMode
from utils.periods import InvalidPeriodError
from conftest import IST, TENANT, OTHER_TENANT, InMemoryRecordStore, SlowRecordStore, budget, expense, ist, receipt


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def march_store():
    return InMemoryRecordStore(
        receipts=[
            receipt(1000, ist(2024, 2, 14)),
            receipt(500, ist(2024, 3, 1), mode=PaymentMode.CASH, services=[("Consultation", 500)]),
            receipt(300, ist(2024, 3, 2), paid=False, services=[("Dressing", 300)]),
            receipt(700, ist(2024, 3, 15), mode=PaymentMode.UPI, services=[("Consultation", 500), ("Injection", 200)]),
            receipt(800, ist(2024, 3, 28), mode=PaymentMode.CARD, services=[("X-Ray", 800)]),
        ],
        expenses=[
            expense(1200, ist(2024, 3, 5), ExpenseCategory.RENT),
            expense(300, ist(2024, 3, 6), ExpenseCategory.SUPPLIES, "Gauze"),
            expense(999, ist(2024, 2, 6), ExpenseCategory.SALARY, "February salary"),
        ],
        budgets=[budget(2024, 3, 4000), budget(2024, 1, 3000)],
    )


def test_monthly_report(march_store) -> None:
    report = run(compute_report(march_store, TENANT, "monthly", 2024, 3, tz=IST))

    assert report.period.display_text == "March 2024"
    assert report.period.month == 3
    assert report.revenue.collected == Decimal(2000)
    assert report.revenue.pending == Decimal(300)
    assert len(report.daily_collection) == 31
    assert sum(p.revenue for p in report.daily_collection) == report.revenue.collected
    assert [p.date for p in report.top_revenue_days[:3]] == [date(2024, 3, 28), date(2024, 3, 15), date(2024, 3, 1)]
    assert report.top_services[0].service == "Consultation"
    assert report.expenses.total == Decimal(1500)
    assert report.profit_loss.net_profit == Decimal(500)
    assert report.profit_loss.profit_margin == 25
    assert report.growth.previous_collected == Decimal(1000)
    assert report.growth.growth_percent == 100
    assert report.budget.revenue_achieved == 50
    assert report.budget.revenue_gap == Decimal(2000)


def test_report_fans_out_current_previous_expenses_and_budget(march_store) -> None:
    run(compute_report(march_store, TENANT, "monthly", 2024, 3, tz=IST))
    names = sorted(call[0] for call in march_store.calls)
    assert names == ["find_budget_target", "find_expenses", "find_receipts", "find_receipts"]
    assert all(call[1] == TENANT for call in march_store.calls)


def test_scenario_profit_and_expense_categories() -> None:
    store = InMemoryRecordStore(
        receipts=[receipt(2000, ist(2024, 5, 10))],
        expenses=[expense(1200, ist(2024, 5, 1), ExpenseCategory.RENT)],
    )
    report = run(compute_report(store, TENANT, "monthly", 2024, 5, tz=IST))

    assert report.profit_loss.net_profit == Decimal(800)
    assert report.profit_loss.profit_margin == 40
    assert [(c.category, c.total, c.count) for c in report.expenses.by_category] == [("rent", Decimal(1200), 1)]
    assert report.budget is None


def test_report_is_idempotent(march_store) -> None:
    first = run(compute_report(march_store, TENANT, "monthly", 2024, 3, tz=IST))
    second = run(compute_report(march_store, TENANT, "monthly", 2024, 3, tz=IST))
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_empty_period_is_a_full_report(march_store) -> None:
    report = run(compute_report(march_store, TENANT, "monthly", 2022, 6, tz=IST))

    assert report.revenue.collected == 0
    assert report.payment_modes == []
    assert report.top_services == []
    assert report.expenses.by_category == []
    assert report.profit_loss.net_profit == 0
    assert report.profit_loss.profit_margin == 0
    assert len(report.daily_collection) == 30
    assert report.budget is None


def test_other_tenant_sees_nothing(march_store) -> None:
    report = run(compute_report(march_store, OTHER_TENANT, "monthly", 2024, 3, tz=IST))
    assert report.revenue.total_receipts == 0
    assert report.budget is None


def test_yearly_report_uses_monthly_buckets_and_combined_budget(march_store) -> None:
    report = run(compute_report(march_store, TENANT, "yearly", 2024, tz=IST))

    assert report.period.type == "yearly"
    assert report.period.month is None
    assert [p.date for p in report.daily_collection] == [date(2024, m, 1) for m in range(1, 13)]
    assert report.daily_collection[1].revenue == Decimal(1000)
    assert report.daily_collection[2].revenue == Decimal(2000)
    assert report.revenue.collected == Decimal(3000)
    assert report.expenses.total == Decimal(2499)
    assert report.budget.target_revenue == Decimal(7000)
    assert report.growth.previous_collected == 0
    assert report.growth.growth_percent == 0


def test_invalid_requests_fail_before_querying(march_store) -> None:
    with pytest.raises(InvalidPeriodError):
        run(compute_report(march_store, TENANT, "monthly", 2024, 13, tz=IST))
    with pytest.raises(InvalidPeriodError):
        run(compute_report(march_store, TENANT, "weekly", 2024, 3, tz=IST))
    assert march_store.calls == []


def test_slow_store_times_out_without_partial_report() -> None:
    store = SlowRecordStore(delay=0.5, receipts=[receipt(100, ist(2024, 3, 1))])
    with pytest.raises(ReportTimeoutError):
        run(compute_report(store, TENANT, "monthly", 2024, 3, tz=IST, timeout=0.05))


def test_store_failure_propagates() -> None:
    class BrokenStore(InMemoryRecordStore):
        def find_expenses(self, tenant_id, date_range):
            raise ConnectionError("record store unavailable")

    with pytest.raises(ConnectionError):
        run(compute_report(BrokenStore(), TENANT, "monthly", 2024, 3, tz=IST))


def test_analytics_trend_and_month_breakdowns(march_store) -> None:
    bundle = run(compute_analytics(march_store, TENANT, 2024, 3, 3, tz=IST))

    assert [(m.year, m.month) for m in bundle.monthly_revenue] == [(2024, 1), (2024, 2), (2024, 3)]
    assert [m.total_revenue for m in bundle.monthly_revenue] == [Decimal(0), Decimal(1000), Decimal(2000)]
    assert bundle.month_over_month_growth == 100
    assert len(bundle.daily_revenue) == 31
    assert {m.mode for m in bundle.payment_modes} == {"cash", "upi", "card"}
    assert bundle.selected_month.month == 3
    assert bundle.budget.revenue_achieved == 50


def test_analytics_growth_uses_previous_month_even_for_one_month_window(march_store) -> None:
    bundle = run(compute_analytics(march_store, TENANT, 2024, 3, 1, tz=IST))
    assert len(bundle.monthly_revenue) == 1
    assert bundle.month_over_month_growth == 100


def test_analytics_rejects_bad_window(march_store) -> None:
    with pytest.raises(InvalidPeriodError):
        run(compute_analytics(march_store, TENANT, 2024, 3, 0, tz=IST))


def test_overview_as_of_now(march_store) -> None:
    now = pytz.utc.localize(datetime(2024, 3, 28, 6, 0))
    overview = run(compute_overview(march_store, TENANT, now, tz=IST))

    assert overview.today.revenue == Decimal(800)
    assert overview.today.receipts == 1
    assert overview.this_month.revenue == Decimal(2000)
    assert overview.this_month.pending == Decimal(300)
    assert overview.this_month.target == Decimal(4000)
    assert overview.last_month.revenue == Decimal(1000)
    assert overview.all_time.total_receipts == 5
    assert overview.all_time.total_revenue == Decimal(3000)
    assert overview.all_time.avg_receipt_value == 750


def test_flatten_for_export_sections(march_store) -> None:
    report = run(compute_report(march_store, TENANT, "monthly", 2024, 3, tz=IST))
    sections = flatten_for_export(report)

    assert [s.title for s in sections] == ["Report Period", "Revenue Summary", "Payment Modes", "Expenses", "Profit/Loss", "Budget"]
    revenue_rows = {row.label: row.value for row in sections[1].rows}
    assert revenue_rows["Collected"] == "₹ 2,000.00"
    assert sections[-1].rows[-1].label == "Revenue Gap"


def test_flatten_for_export_omits_missing_budget() -> None:
    store = InMemoryRecordStore()
    report = run(compute_report(store, TENANT, "monthly", 2024, 3, tz=IST))
    sections = flatten_for_export(report)

    assert "Budget" not in [s.title for s in sections]
    assert sections[2].rows == []


def test_default_timeout_comes_from_settings() -> None:
    assert billing_reports.REPORT_TIMEOUT_SECONDS > 0


def test_custom_report_across_month_boundary(march_store) -> None:
    report = run(compute_report(march_store, TENANT, "custom", start=date(2024, 2, 20), end=date(2024, 3, 5), tz=IST))

    assert report.period.type == "custom"
    assert report.period.month is None
    assert report.period.display_text == "20/02/2024 - 05/03/2024"
    assert [p.date for p in report.daily_collection][:1] == [date(2024, 2, 20)]
    assert [p.date for p in report.daily_collection][-1:] == [date(2024, 3, 5)]
    assert len(report.daily_collection) == 15
    assert report.revenue.collected == Decimal(500)
    assert report.revenue.pending == Decimal(300)
    assert report.expenses.total == Decimal(1200)
    # 2024-02-05..2024-02-19 holds the 1000 receipt from 14 Feb
    assert report.growth.previous_collected == Decimal(1000)
    assert report.growth.growth_percent == -50
    assert report.budget is None
    assert "find_budget_target" not in [call[0] for call in march_store.calls]
    assert "find_budget_targets" not in [call[0] for call in march_store.calls]


def test_custom_report_end_day_is_inclusive() -> None:
    store = InMemoryRecordStore(receipts=[receipt(400, ist(2024, 3, 5, 23, 59))])
    report = run(compute_report(store, TENANT, "custom", start=date(2024, 3, 5), end=date(2024, 3, 5), tz=IST))

    assert report.revenue.collected == Decimal(400)
    assert len(report.daily_collection) == 1


def test_custom_report_rejects_reversed_or_missing_dates(march_store) -> None:
    with pytest.raises(InvalidPeriodError):
        run(compute_report(march_store, TENANT, "custom", start=date(2024, 3, 5), end=date(2024, 2, 20), tz=IST))
    with pytest.raises(InvalidPeriodError):
        run(compute_report(march_store, TENANT, "custom", start=date(2024, 3, 5), tz=IST))
    assert march_store.calls == []


class InFlightRecordStore(InMemoryRecordStore):
    """Holds every lookup open for `delay` seconds and records how many overlap."""

    def __init__(self, delay, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay
        self.lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def _hold(self):
        with self.lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        time.sleep(self.delay)
        with self.lock:
            self.in_flight -= 1

    def find_receipts(self, tenant_id, date_range):
        self._hold()
        return super().find_receipts(tenant_id, date_range)

    def find_expenses(self, tenant_id, date_range):
        self._hold()
        return super().find_expenses(tenant_id, date_range)

    def find_budget_target(self, tenant_id, year, month):
        self._hold()
        return super().find_budget_target(tenant_id, year, month)


def test_report_lookups_run_concurrently() -> None:
    store = InFlightRecordStore(delay=0.2, receipts=[receipt(100, ist(2024, 3, 1))])

    started = time.monotonic()
    report = run(compute_report(store, TENANT, "monthly", 2024, 3, tz=IST, timeout=5))
    elapsed = time.monotonic() - started

    assert report.revenue.collected == Decimal(100)
    assert len(store.calls) == 4
    assert store.max_in_flight >= 2
    # Four sequential lookups would take at least 0.8s.
    assert elapsed < 0.6


def test_overview_totals_all_time_without_loading_every_receipt(march_store) -> None:
    now = pytz.utc.localize(datetime(2024, 3, 28, 6, 0))
    run(compute_overview(march_store, TENANT, now, tz=IST))

    assert ("find_receipt_totals", TENANT) in march_store.calls
    assert all(call[2] is not None for call in march_store.calls if call[0] == "find_receipts")
