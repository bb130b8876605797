"""
Rollups over receipts and expenses for one resolved period.

Every function here is pure: it takes already-fetched records and returns report values,
so each grouping rule can be checked on its own with plain lists.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, List

from crud.billing_metrics import round_half_up
from models.receipts import PaymentMode
from schemas.billing_reports import (
    CategoryTotal,
    CollectionPoint,
    ExpenseSummary,
    MonthlyRevenue,
    PaymentModeShare,
    RevenueSummary,
    ServiceShare,
)
from schemas.expenses import ExpenseRecord
from schemas.receipts import ReceiptRecord
from utils.periods import DateRange, get_timezone, months_range, to_local

DEFAULT_TOP_DAYS = 5
DEFAULT_TOP_SERVICES = 10


def average_value(total: Decimal, count: int) -> int:
    return round_half_up(total / count) if count else 0


def summarize_revenue(receipts: Iterable[ReceiptRecord]) -> RevenueSummary:
    total_receipts = paid_count = 0
    gross = discount = net = collected = pending = Decimal(0)

    for receipt in receipts:
        total_receipts += 1
        gross += receipt.subtotal
        discount += receipt.discount_amount
        net += receipt.total_amount
        if receipt.is_paid:
            paid_count += 1
            collected += receipt.total_amount
        else:
            pending += receipt.total_amount

    return RevenueSummary(
        total_receipts=total_receipts,
        gross_revenue=gross,
        total_discount=discount,
        net_revenue=net,
        collected=collected,
        pending=pending,
        paid_count=paid_count,
        unpaid_count=total_receipts - paid_count,
        average_receipt_value=average_value(collected, paid_count),
    )


def _mode_of(receipt: ReceiptRecord) -> str:
    # Paid receipts saved without a mode (or with the placeholder "unpaid") are bucketed as "other".
    if receipt.payment_mode is None or receipt.payment_mode == PaymentMode.UNPAID:
        return PaymentMode.OTHER.value
    return receipt.payment_mode.value


def payment_mode_breakdown(receipts: Iterable[ReceiptRecord]) -> List[PaymentModeShare]:
    counts = defaultdict(int)
    amounts = defaultdict(Decimal)
    for receipt in receipts:
        if not receipt.is_paid:
            continue
        mode = _mode_of(receipt)
        counts[mode] += 1
        amounts[mode] += receipt.total_amount

    total_paid = sum(amounts.values(), Decimal(0))
    shares = [
        PaymentModeShare(
            mode=mode,
            count=counts[mode],
            amount=amounts[mode],
            percentage=round_half_up(amounts[mode] / total_paid * 100) if total_paid else 0,
        )
        for mode in counts
    ]
    shares.sort(key=lambda share: (-share.amount, share.mode))
    return shares


def _bucket_key(instant, granularity: str, tz) -> date:
    local = to_local(instant, tz).date()
    if granularity == "month":
        return local.replace(day=1)
    return local


def collection_series(receipts: Iterable[ReceiptRecord], date_range: DateRange, granularity: str = "day", tz=None) -> List[CollectionPoint]:
    """
    Zero-filled collection series with exactly one point per calendar day (or month) of `date_range`.

    Receipts falling outside the range are ignored.
    """
    if granularity not in ("day", "month"):
        raise ValueError(f"Unsupported series granularity: {granularity}")
    tz = tz or get_timezone()
    buckets = date_range.days() if granularity == "day" else date_range.months()

    revenue = {bucket: Decimal(0) for bucket in buckets}
    pending = {bucket: Decimal(0) for bucket in buckets}
    counts = {bucket: 0 for bucket in buckets}

    for receipt in receipts:
        key = _bucket_key(receipt.receipt_date, granularity, tz)
        if key not in counts:
            continue
        counts[key] += 1
        if receipt.is_paid:
            revenue[key] += receipt.total_amount
        else:
            pending[key] += receipt.total_amount

    return [
        CollectionPoint(date=bucket, revenue=revenue[bucket], receipt_count=counts[bucket], pending_amount=pending[bucket])
        for bucket in buckets
    ]


def top_revenue_days(series: Iterable[CollectionPoint], limit: int = DEFAULT_TOP_DAYS) -> List[CollectionPoint]:
    return sorted(series, key=lambda point: (-point.revenue, point.date))[:limit]


def service_breakdown(receipts: Iterable[ReceiptRecord], limit: int = DEFAULT_TOP_SERVICES) -> List[ServiceShare]:
    counts = defaultdict(int)
    amounts = defaultdict(Decimal)
    for receipt in receipts:
        for item in receipt.line_items:
            counts[item.description] += 1
            amounts[item.description] += item.amount

    services = [ServiceShare(service=name, count=counts[name], amount=amounts[name]) for name in counts]
    services.sort(key=lambda share: (-share.amount, share.service))
    return services[:limit]


def expense_breakdown(expenses: Iterable[ExpenseRecord]) -> ExpenseSummary:
    counts = defaultdict(int)
    totals = defaultdict(Decimal)
    for expense in expenses:
        category = expense.category.value
        counts[category] += 1
        totals[category] += expense.amount

    by_category = [CategoryTotal(category=name, total=totals[name], count=counts[name]) for name in counts]
    by_category.sort(key=lambda row: (-row.total, row.category))
    return ExpenseSummary(
        total=sum(totals.values(), Decimal(0)),
        count=sum(counts.values()),
        by_category=by_category,
    )


def monthly_trend(receipts: Iterable[ReceiptRecord], year: int, month: int, months_back: int, tz=None) -> List[MonthlyRevenue]:
    """Per-month revenue for the `months_back` months ending with (year, month), oldest first."""
    tz = tz or get_timezone()
    window = months_range(year, month, months_back, tz)
    grouped = defaultdict(list)
    for receipt in receipts:
        grouped[_bucket_key(receipt.receipt_date, "month", tz)].append(receipt)

    trend = []
    for bucket in window.months():
        summary = summarize_revenue(grouped.get(bucket, []))
        trend.append(MonthlyRevenue(
            year=bucket.year,
            month=bucket.month,
            total_revenue=summary.collected,
            total_receipts=summary.total_receipts,
            paid_amount=summary.collected,
            unpaid_amount=summary.pending,
            total_discount=summary.total_discount,
            avg_receipt_value=summary.average_receipt_value,
        ))
    return trend
