"""
Derived billing metrics: growth, budget progress and profit/loss.

Ratios with a zero denominator (growth against an empty previous period, margin on zero
revenue, average of zero receipts) are reported as 0 rather than raising. A 0 therefore
means "no basis for comparison" as often as it means "flat".
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Iterable, Optional

from schemas.billing_reports import BudgetProgress, Growth, ProfitLoss
from schemas.budget_targets import BudgetTargetRecord


def round_half_up(value) -> int:
    """Round to the nearest integer with halves going toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return int((Decimal(value) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def growth_percent(current: Decimal, previous: Decimal) -> int:
    if not previous:
        return 0
    return round_half_up((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100)


def period_growth(current: Decimal, previous: Decimal) -> Growth:
    return Growth(previous_collected=previous, growth_percent=growth_percent(current, previous))


def budget_progress(collected: Decimal, target: Optional[BudgetTargetRecord]) -> Optional[BudgetProgress]:
    """Progress against a revenue target, or None when no target is configured for the period."""
    if target is None:
        return None

    target_revenue = Decimal(target.target_revenue)
    if target_revenue:
        achieved = min(100, round_half_up(Decimal(collected) / target_revenue * 100))
    else:
        achieved = 100 if collected > 0 else 0

    gap = target_revenue - Decimal(collected)
    return BudgetProgress(
        target_revenue=target_revenue,
        target_expenses=target.target_expenses,
        revenue_achieved=achieved,
        revenue_gap=gap,
        exceeded=gap < 0,
    )


def combine_budget_targets(targets: Iterable[BudgetTargetRecord]) -> Optional[BudgetTargetRecord]:
    """Fold the monthly targets of one year into a single yearly target."""
    targets = list(targets)
    if not targets:
        return None

    revenue = sum((Decimal(t.target_revenue) for t in targets), Decimal(0))
    expense_targets = [Decimal(t.target_expenses) for t in targets if t.target_expenses is not None]
    return BudgetTargetRecord(
        tenant_id=targets[0].tenant_id,
        year=targets[0].year,
        month=1,
        target_revenue=revenue,
        target_expenses=sum(expense_targets, Decimal(0)) if expense_targets else None,
        notes=f"{len(targets)} of 12 months configured",
    )


def profit_and_loss(collected: Decimal, total_expenses: Decimal) -> ProfitLoss:
    net_profit = Decimal(collected) - Decimal(total_expenses)
    margin = round_half_up(net_profit / Decimal(collected) * 100) if collected else 0
    return ProfitLoss(
        revenue=collected,
        expenses=total_expenses,
        net_profit=net_profit,
        profit_margin=margin,
    )
