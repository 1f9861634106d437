from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from household_budget.domain.months import following_months, month_key, month_label
from household_budget.models import (
    ZERO,
    CategoryAmount,
    Forecast,
    MonthSummary,
    ProjectedMonth,
    TrendDirection,
)

# Damping bounds for compounding; not a measured constant.
MIN_GROWTH_RATE = Decimal("-0.8")
MAX_GROWTH_RATE = Decimal("0.6")

# Changes within +/-0.1% read as flat.
TREND_EPSILON = Decimal("0.001")


def month_over_month_change(summaries: Sequence[MonthSummary]) -> Decimal:
    if len(summaries) < 2:
        return ZERO
    previous, latest = summaries[-2], summaries[-1]
    if previous.total <= 0:
        return ZERO
    return (latest.total - previous.total) / previous.total


def trend_direction(change: Decimal) -> TrendDirection:
    if change > TREND_EPSILON:
        return TrendDirection.RISING
    if change < -TREND_EPSILON:
        return TrendDirection.FALLING
    return TrendDirection.FLAT


def clamp_growth_rate(change: Decimal) -> Decimal:
    return max(MIN_GROWTH_RATE, min(change, MAX_GROWTH_RATE))


def _parse_month_key(key: str) -> tuple[int, int]:
    year, month = key.split("-", 1)
    return int(year), int(month)


def project(
    summaries: Sequence[MonthSummary],
    horizon_months: int,
    reference_date: date | None = None,
) -> Forecast:
    """
    Extrapolate future monthly totals from the most recent trend.

    The latest month's total is compounded by the clamped month-over-month
    growth rate, and each projected total is split across categories using the
    latest month's category mix, which is assumed to stay fixed.
    """
    if not summaries:
        return Forecast(
            average_monthly_spend=ZERO,
            mom_change=ZERO,
            trend_direction=TrendDirection.FLAT,
            growth_rate=ZERO,
            latest_month_total=ZERO,
        )

    latest = summaries[-1]
    average = sum((summary.total for summary in summaries), ZERO) / len(summaries)
    change = month_over_month_change(summaries)
    growth_rate = clamp_growth_rate(change)

    ratios = [
        (item.category, item.amount / latest.total if latest.total > 0 else ZERO)
        for item in latest.categories
    ]

    if reference_date is not None:
        anchor = (reference_date.year, reference_date.month)
    else:
        anchor = _parse_month_key(latest.month_key)

    projections: list[ProjectedMonth] = []
    for step, (year, month) in enumerate(following_months(*anchor, max(horizon_months, 0)), start=1):
        projected_total = max(ZERO, latest.total * (1 + growth_rate) ** step)
        projections.append(ProjectedMonth(
            month=month_label(year, month),
            month_key=month_key(year, month),
            total=projected_total,
            categories=[
                CategoryAmount(category=category, amount=projected_total * ratio)
                for category, ratio in ratios
            ],
        ))

    return Forecast(
        average_monthly_spend=average,
        mom_change=change,
        trend_direction=trend_direction(change),
        growth_rate=growth_rate,
        latest_month_total=latest.total,
        projections=projections,
    )
