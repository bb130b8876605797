from pydantic import BaseModel
from typing import List, Optional
from datetime import date as calendar_date, datetime
from decimal import Decimal


class ReportModel(BaseModel):
    """Base for every value the reporting engine returns; reports are immutable once built."""

    class Config:
        frozen = True


class ReportPeriod(ReportModel):
    type: str
    year: int
    month: Optional[int] = None
    start_date: datetime
    end_date: datetime
    display_text: str


class RevenueSummary(ReportModel):
    total_receipts: int = 0
    gross_revenue: Decimal = Decimal(0)
    total_discount: Decimal = Decimal(0)
    net_revenue: Decimal = Decimal(0)
    collected: Decimal = Decimal(0)
    pending: Decimal = Decimal(0)
    paid_count: int = 0
    unpaid_count: int = 0
    average_receipt_value: int = 0


class PaymentModeShare(ReportModel):
    mode: str
    count: int
    amount: Decimal
    percentage: int


class CollectionPoint(ReportModel):
    date: calendar_date
    revenue: Decimal = Decimal(0)
    receipt_count: int = 0
    pending_amount: Decimal = Decimal(0)


class ServiceShare(ReportModel):
    service: str
    count: int
    amount: Decimal


class CategoryTotal(ReportModel):
    category: str
    total: Decimal
    count: int


class ExpenseSummary(ReportModel):
    total: Decimal = Decimal(0)
    count: int = 0
    by_category: List[CategoryTotal] = []


class ProfitLoss(ReportModel):
    revenue: Decimal
    expenses: Decimal
    net_profit: Decimal
    profit_margin: int


class Growth(ReportModel):
    previous_collected: Decimal
    growth_percent: int


class BudgetProgress(ReportModel):
    target_revenue: Decimal
    target_expenses: Optional[Decimal] = None
    revenue_achieved: int
    revenue_gap: Decimal
    exceeded: bool


class Report(ReportModel):
    period: ReportPeriod
    revenue: RevenueSummary
    payment_modes: List[PaymentModeShare]
    daily_collection: List[CollectionPoint]
    top_revenue_days: List[CollectionPoint]
    top_services: List[ServiceShare]
    expenses: ExpenseSummary
    profit_loss: ProfitLoss
    growth: Growth
    budget: Optional[BudgetProgress] = None


class MonthlyRevenue(ReportModel):
    year: int
    month: int
    total_revenue: Decimal = Decimal(0)
    total_receipts: int = 0
    paid_amount: Decimal = Decimal(0)
    unpaid_amount: Decimal = Decimal(0)
    total_discount: Decimal = Decimal(0)
    avg_receipt_value: int = 0


class SelectedMonth(ReportModel):
    year: int
    month: int


class AnalyticsBundle(ReportModel):
    monthly_revenue: List[MonthlyRevenue]
    payment_modes: List[PaymentModeShare]
    daily_revenue: List[CollectionPoint]
    month_over_month_growth: int
    top_revenue_days: List[CollectionPoint]
    selected_month: SelectedMonth
    budget: Optional[BudgetProgress] = None


class PeriodTotals(ReportModel):
    revenue: Decimal = Decimal(0)
    receipts: int = 0
    pending: Decimal = Decimal(0)


class MonthTotals(PeriodTotals):
    target: Optional[Decimal] = None


class AllTimeTotals(ReportModel):
    total_revenue: Decimal = Decimal(0)
    total_receipts: int = 0
    avg_receipt_value: int = 0


class BillingOverview(ReportModel):
    today: PeriodTotals
    this_month: MonthTotals
    last_month: PeriodTotals
    all_time: AllTimeTotals


class ExportRow(ReportModel):
    label: str
    value: str = ""
    count: Optional[int] = None


class ExportSection(ReportModel):
    title: str
    rows: List[ExportRow]
