"""
Billing report assembly.

Resolves the requested period, fetches the records it needs from the record store
concurrently, runs the rollups in `crud.billing_aggregation` and the ratios in
`crud.billing_metrics`, and returns one frozen report value. Fetches are bounded by a
single timeout; if it expires the whole request fails and nothing partial is returned.
"""

import asyncio
import logging
import os
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from dotenv import load_dotenv
from starlette.concurrency import run_in_threadpool

from crud import billing_aggregation as aggregation
from crud import billing_metrics as metrics
from schemas.billing_reports import (
    AllTimeTotals,
    AnalyticsBundle,
    BillingOverview,
    ExportRow,
    ExportSection,
    MonthTotals,
    PeriodTotals,
    Report,
    ReportPeriod,
    SelectedMonth,
)
from utils.formatting import format_indian_currency
from utils.periods import (
    InvalidPeriodError,
    current_year_month,
    day_range,
    get_timezone,
    month_range,
    months_range,
    period_display_text,
    resolve_custom_period,
    resolve_period,
    shift_month,
    to_local,
)

load_dotenv()

logger = logging.getLogger(__name__)

REPORT_TIMEOUT_SECONDS = float(os.getenv("REPORT_TIMEOUT_SECONDS", "10"))
REPORT_TYPES = ("monthly", "yearly", "custom")


class ReportTimeoutError(Exception):
    pass


async def _fetch_all(calls, timeout: Optional[float]):
    """Run independent record-store lookups concurrently and wait for all of them."""
    timeout = REPORT_TIMEOUT_SECONDS if timeout is None else timeout
    pending = asyncio.gather(*(run_in_threadpool(func, *args) for func, *args in calls))
    try:
        # Worker threads cannot be interrupted, so stop waiting on them instead of cancelling.
        return await asyncio.wait_for(asyncio.shield(pending), timeout=timeout)
    except asyncio.TimeoutError as exc:
        pending.add_done_callback(_discard_late_result)
        raise ReportTimeoutError(f"Record store did not answer within {timeout:g}s") from exc


def _discard_late_result(future):
    if not future.cancelled() and future.exception() is not None:
        logger.warning(f"Record store lookup failed after the report timed out: {future.exception()}")


async def compute_report(
    store,
    tenant_id: str,
    report_type: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    tz=None,
    top_days: int = aggregation.DEFAULT_TOP_DAYS,
    timeout: Optional[float] = None,
) -> Report:
    """
    Build a monthly, yearly or custom-range report.

    Custom reports cover the inclusive local days `start`..`end`, compare against the
    window of the same length just before it and carry no budget.
    """
    if report_type not in REPORT_TYPES:
        raise InvalidPeriodError(f"Unknown report type '{report_type}'. Expected one of: {', '.join(REPORT_TYPES)}")
    tz = tz or get_timezone()
    yearly = report_type == "yearly"
    if report_type == "custom":
        period = resolve_custom_period(start, end, tz=tz)
    else:
        period = resolve_period("year" if yearly else "month", year, None if yearly else month, tz=tz)

    calls = [
        (store.find_receipts, tenant_id, period.current),
        (store.find_receipts, tenant_id, period.previous),
        (store.find_expenses, tenant_id, period.current),
    ]
    if yearly:
        calls.append((store.find_budget_targets, tenant_id, period.year))
    elif report_type == "monthly":
        calls.append((store.find_budget_target, tenant_id, period.year, period.month))
    receipts, previous_receipts, expenses, *budget_lookup = await _fetch_all(calls, timeout)

    budget = budget_lookup[0] if budget_lookup else None
    if yearly:
        budget = metrics.combine_budget_targets(budget)

    revenue = aggregation.summarize_revenue(receipts)
    previous_collected = aggregation.summarize_revenue(previous_receipts).collected
    series = aggregation.collection_series(receipts, period.current, "month" if yearly else "day", tz)
    expense_summary = aggregation.expense_breakdown(expenses)

    logger.info(
        "Built %s report for tenant %s (%s): %d receipts, %d expenses",
        report_type, tenant_id, period_display_text(period), revenue.total_receipts, expense_summary.count,
    )
    return Report(
        period=ReportPeriod(
            type=report_type,
            year=period.year,
            month=period.month,
            start_date=period.current.start,
            end_date=period.current.end,
            display_text=period_display_text(period),
        ),
        revenue=revenue,
        payment_modes=aggregation.payment_mode_breakdown(receipts),
        daily_collection=series,
        top_revenue_days=aggregation.top_revenue_days(series, top_days),
        top_services=aggregation.service_breakdown(receipts),
        expenses=expense_summary,
        profit_loss=metrics.profit_and_loss(revenue.collected, expense_summary.total),
        growth=metrics.period_growth(revenue.collected, previous_collected),
        budget=metrics.budget_progress(revenue.collected, budget),
    )


async def compute_analytics(
    store,
    tenant_id: str,
    year: int,
    month: int,
    months_back: int = 12,
    *,
    tz=None,
    top_days: int = aggregation.DEFAULT_TOP_DAYS,
    timeout: Optional[float] = None,
) -> AnalyticsBundle:
    """Monthly trend for the `months_back` months ending with (year, month) plus that month's breakdowns."""
    if months_back < 1 or months_back > 120:
        raise InvalidPeriodError(f"months_back must be between 1 and 120, got {months_back}")
    tz = tz or get_timezone()
    period = resolve_period("month", year, month, tz=tz)
    window = months_range(year, month, max(months_back, 2), tz)

    receipts, target = await _fetch_all([
        (store.find_receipts, tenant_id, window),
        (store.find_budget_target, tenant_id, year, month),
    ], timeout)

    trend = aggregation.monthly_trend(receipts, year, month, max(months_back, 2), tz)
    month_receipts = [r for r in receipts if period.current.contains(to_local(r.receipt_date, tz))]
    daily = aggregation.collection_series(month_receipts, period.current, "day", tz)
    current, previous = trend[-1].total_revenue, trend[-2].total_revenue

    return AnalyticsBundle(
        monthly_revenue=trend[-months_back:],
        payment_modes=aggregation.payment_mode_breakdown(month_receipts),
        daily_revenue=daily,
        month_over_month_growth=metrics.growth_percent(current, previous),
        top_revenue_days=aggregation.top_revenue_days(daily, top_days),
        selected_month=SelectedMonth(year=year, month=month),
        budget=metrics.budget_progress(current, target),
    )


async def compute_overview(store, tenant_id: str, now: datetime, *, tz=None, timeout: Optional[float] = None) -> BillingOverview:
    """Today / this month / last month / all-time totals as of `now`."""
    tz = tz or get_timezone()
    local_now = to_local(now, tz)
    year, month = current_year_month(now, tz)
    last_year, last_month = shift_month(year, month, -1)

    today_receipts, month_receipts, last_month_receipts, all_time, target = await _fetch_all([
        (store.find_receipts, tenant_id, day_range(local_now.year, local_now.month, local_now.day, tz)),
        (store.find_receipts, tenant_id, month_range(year, month, tz)),
        (store.find_receipts, tenant_id, month_range(last_year, last_month, tz)),
        (store.find_receipt_totals, tenant_id),
        (store.find_budget_target, tenant_id, year, month),
    ], timeout)

    today = aggregation.summarize_revenue(today_receipts)
    this_month = aggregation.summarize_revenue(month_receipts)
    previous = aggregation.summarize_revenue(last_month_receipts)

    return BillingOverview(
        today=PeriodTotals(revenue=today.collected, receipts=today.total_receipts, pending=today.pending),
        this_month=MonthTotals(
            revenue=this_month.collected,
            receipts=this_month.total_receipts,
            pending=this_month.pending,
            target=target.target_revenue if target else None,
        ),
        last_month=PeriodTotals(revenue=previous.collected, receipts=previous.total_receipts, pending=previous.pending),
        all_time=AllTimeTotals(
            total_revenue=all_time.collected,
            total_receipts=all_time.total_receipts,
            avg_receipt_value=aggregation.average_value(all_time.collected, all_time.paid_count),
        ),
    )


def _money(amount: Decimal) -> str:
    return format_indian_currency(amount)


def flatten_for_export(report: Report) -> List[ExportSection]:
    """Lay a report out as titled sections of (label, value) rows for tabular export."""
    revenue = report.revenue
    sections = [
        ExportSection(title="Report Period", rows=[ExportRow(label="Period", value=report.period.display_text)]),
        ExportSection(title="Revenue Summary", rows=[
            ExportRow(label="Total Receipts", value=str(revenue.total_receipts)),
            ExportRow(label="Gross Revenue", value=_money(revenue.gross_revenue)),
            ExportRow(label="Total Discount", value=_money(revenue.total_discount)),
            ExportRow(label="Net Revenue", value=_money(revenue.net_revenue)),
            ExportRow(label="Collected", value=_money(revenue.collected)),
            ExportRow(label="Pending", value=_money(revenue.pending)),
            ExportRow(label="Average Receipt Value", value=_money(Decimal(revenue.average_receipt_value))),
        ]),
        ExportSection(title="Payment Modes", rows=[
            ExportRow(label=share.mode.title(), value=_money(share.amount), count=share.count)
            for share in report.payment_modes
        ]),
        ExportSection(title="Expenses", rows=[ExportRow(label="Total Expenses", value=_money(report.expenses.total), count=report.expenses.count)] + [
            ExportRow(label=row.category.title(), value=_money(row.total), count=row.count)
            for row in report.expenses.by_category
        ]),
        ExportSection(title="Profit/Loss", rows=[
            ExportRow(label="Revenue", value=_money(report.profit_loss.revenue)),
            ExportRow(label="Expenses", value=_money(report.profit_loss.expenses)),
            ExportRow(label="Net Profit", value=_money(report.profit_loss.net_profit)),
            ExportRow(label="Profit Margin", value=f"{report.profit_loss.profit_margin}%"),
        ]),
    ]

    if report.budget is not None:
        budget = report.budget
        sections.append(ExportSection(title="Budget", rows=[
            ExportRow(label="Target Revenue", value=_money(budget.target_revenue)),
            ExportRow(label="Achieved", value=f"{budget.revenue_achieved}%"),
            ExportRow(label="Exceeded By" if budget.exceeded else "Revenue Gap", value=_money(abs(budget.revenue_gap))),
        ]))
    return sections
