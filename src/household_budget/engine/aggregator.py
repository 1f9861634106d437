from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from household_budget.domain.months import month_key, month_label, month_window
from household_budget.engine.dedup import dedupe
from household_budget.engine.resolver import filter_active
from household_budget.models import (
    ZERO,
    CashFlow,
    CategoryAmount,
    CategoryShare,
    FinancialRecord,
    MonthSummary,
)

UNCATEGORIZED = "Other"
DEFAULT_SUMMARY_MONTHS = 3
MAX_SUMMARY_MONTHS = 18
HUNDRED = Decimal("100")


@dataclass
class _CategoryTotals:
    amounts: dict[str, Decimal] = field(default_factory=dict)
    limits: dict[str, Decimal] = field(default_factory=dict)

    def add(self, category: str, amount: Decimal, budget_limit: Decimal | None = None) -> None:
        if amount == 0:
            return
        key = category or UNCATEGORIZED
        self.amounts[key] = self.amounts.get(key, ZERO) + amount
        if budget_limit is not None and key not in self.limits:
            self.limits[key] = budget_limit

    def as_list(self) -> list[CategoryAmount]:
        return [
            CategoryAmount(category=category, amount=amount, budget_limit=self.limits.get(category))
            for category, amount in self.amounts.items()
        ]


def clamp_summary_months(months: object) -> int:
    try:
        value = int(months)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return DEFAULT_SUMMARY_MONTHS
    if value <= 0:
        return DEFAULT_SUMMARY_MONTHS
    return min(value, MAX_SUMMARY_MONTHS)


def sum_by_category(items: Iterable[CategoryAmount | FinancialRecord]) -> list[CategoryAmount]:
    """Fold amounts per category in first-seen order, keeping the first budget limit."""
    totals = _CategoryTotals()
    for item in items:
        totals.add(item.category, item.amount, item.budget_limit)
    return totals.as_list()


def _summarise(records: list[FinancialRecord], year: int, month: int) -> MonthSummary:
    categories = sum_by_category(filter_active(records, month, year))
    return MonthSummary(
        label=month_label(year, month),
        month_key=month_key(year, month),
        total=sum((item.amount for item in categories), ZERO),
        categories=categories,
    )


def summarise_month(records: Iterable[FinancialRecord], month: int, year: int) -> MonthSummary:
    return _summarise(dedupe(records), year, month)


def build_monthly_summaries(
    records: Iterable[FinancialRecord],
    *,
    months: int,
    reference_date: date,
) -> list[MonthSummary]:
    """
    Summarise ``months`` calendar months ending at ``reference_date``, oldest first.

    Categories with no activity in a month are left out of that month's list.
    Income and expense rows are summarised the same way; call once per set.
    """
    window = month_window(clamp_summary_months(months), reference_date)
    unique = dedupe(records)
    return [_summarise(unique, year, month) for year, month in window]


def category_breakdown(summary: MonthSummary) -> list[CategoryShare]:
    total = summary.total
    shares = [
        CategoryShare(
            category=item.category,
            amount=item.amount,
            percentage=item.amount / total * HUNDRED if total > 0 else ZERO,
            budget_limit=item.budget_limit,
            over_budget=item.budget_limit is not None and item.amount > item.budget_limit,
        )
        for item in summary.categories
    ]
    shares.sort(key=lambda share: share.amount, reverse=True)
    return shares


def build_cash_flow(income: MonthSummary, expenses: MonthSummary) -> CashFlow:
    net = income.total - expenses.total
    return CashFlow(
        total_income=income.total,
        total_expenses=expenses.total,
        net_savings=net,
        savings_rate=net / income.total * HUNDRED if income.total > 0 else ZERO,
    )
