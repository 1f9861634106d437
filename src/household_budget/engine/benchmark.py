from collections.abc import Iterable
from decimal import Decimal

from household_budget.engine.taxonomy import benchmark_for, normalize_category
from household_budget.models import (
    ZERO,
    BenchmarkComparison,
    BenchmarkStatus,
    CategoryAmount,
    round_money,
)


def classify(difference: Decimal | None) -> BenchmarkStatus:
    if difference is None:
        return BenchmarkStatus.NO_BENCHMARK
    if difference > 0:
        return BenchmarkStatus.ABOVE
    if difference < 0:
        return BenchmarkStatus.BELOW
    return BenchmarkStatus.AT_PAR


def compare(category_spend: Iterable[CategoryAmount], household_size: int) -> list[BenchmarkComparison]:
    """
    Compare each category's spend with the UK average for the household size.

    A category without a benchmark mapping is reported as ``no-benchmark``;
    that is an expected outcome, not an error.
    """
    comparisons: list[BenchmarkComparison] = []
    for item in category_spend:
        canonical = normalize_category(item.category)
        label = canonical or item.category
        actual = round_money(item.amount)
        benchmark = benchmark_for(canonical, household_size) if canonical else None
        difference = actual - benchmark if benchmark is not None else None
        comparisons.append(BenchmarkComparison(
            category=label,
            actual=actual,
            benchmark=benchmark,
            difference=difference,
            status=classify(difference),
        ))
    return comparisons


def total_benchmark(comparisons: Iterable[BenchmarkComparison]) -> Decimal:
    """Sum of benchmarks, counting each canonical category once."""
    per_category: dict[str, Decimal] = {}
    for item in comparisons:
        if item.benchmark is not None:
            per_category.setdefault(item.category, item.benchmark)
    return sum(per_category.values(), ZERO)
