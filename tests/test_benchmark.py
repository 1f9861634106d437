from decimal import Decimal

import pytest

from household_budget.engine.benchmark import classify, compare, total_benchmark
from household_budget.engine.taxonomy import (
    DINING_OUT,
    GROCERIES,
    HOUSING,
    INSURANCE,
    TRANSPORTATION,
    benchmark_for,
    normalize_category,
)
from household_budget.models import BenchmarkStatus, CategoryAmount


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Groceries", GROCERIES),
        ("  FOOD ", GROCERIES),
        ("Housing", HOUSING),
        ("Monthly rent", HOUSING),
        ("Car Insurance", INSURANCE),
        ("Dining Out & Takeaways", DINING_OUT),
        ("Restaurant", DINING_OUT),
        ("Transprot", TRANSPORTATION),
    ],
)
def test_normalize_category(label: str, expected: str) -> None:
    assert normalize_category(label) == expected


@pytest.mark.parametrize("label", [None, "", "   ", "Pets", "Gifts for friends"])
def test_unmapped_categories(label: str | None) -> None:
    assert normalize_category(label) is None


def test_benchmark_table_lookup() -> None:
    assert benchmark_for("Groceries", 4) == Decimal(640)
    assert benchmark_for("Housing", 2) == Decimal(1050)


def test_benchmark_scales_from_closest_size() -> None:
    # 1 person borrows the 2-person figure, 6 people the 5-person one.
    assert benchmark_for("Groceries", 1) == Decimal(210)
    assert benchmark_for("Groceries", 6) == Decimal(864)
    assert benchmark_for("Insurance", 7) == Decimal(266)


def test_no_benchmark_without_household() -> None:
    assert benchmark_for("Groceries", 0) is None
    assert benchmark_for("Pets", 3) is None


def test_compare_statuses() -> None:
    spend = [
        CategoryAmount(category="Groceries", amount=Decimal("700")),
        CategoryAmount(category="Rent", amount=Decimal("1000.004")),
        CategoryAmount(category="Insurance", amount=Decimal("175")),
        CategoryAmount(category="Pets", amount=Decimal("60")),
    ]

    result = {item.category: item for item in compare(spend, 4)}

    assert result[GROCERIES].status == BenchmarkStatus.ABOVE
    assert result[GROCERIES].difference == Decimal("60")
    assert result[HOUSING].status == BenchmarkStatus.BELOW
    assert result[HOUSING].actual == Decimal("1000.00")
    assert result[HOUSING].difference == Decimal("-380.00")
    assert result[INSURANCE].status == BenchmarkStatus.AT_PAR
    assert result["Pets"].status == BenchmarkStatus.NO_BENCHMARK
    assert result["Pets"].benchmark is None
    assert result["Pets"].difference is None


def test_compare_keeps_one_line_per_spend_entry() -> None:
    spend = [
        CategoryAmount(category="Rent", amount=Decimal("800")),
        CategoryAmount(category="Mortgage", amount=Decimal("600")),
    ]

    result = compare(spend, 2)

    assert [(c.category, c.actual, c.benchmark, c.difference, c.status) for c in result] == [
        (HOUSING, Decimal("800"), Decimal(1050), Decimal("-250"), BenchmarkStatus.BELOW),
        (HOUSING, Decimal("600"), Decimal(1050), Decimal("-450"), BenchmarkStatus.BELOW),
    ]


def test_total_benchmark_counts_each_category_once() -> None:
    spend = [
        CategoryAmount(category="Rent", amount=Decimal("800")),
        CategoryAmount(category="Mortgage", amount=Decimal("600")),
        CategoryAmount(category="Groceries", amount=Decimal("300")),
    ]

    assert total_benchmark(compare(spend, 2)) == Decimal(1470)


def test_total_benchmark_skips_unmapped() -> None:
    spend = [
        CategoryAmount(category="Groceries", amount=Decimal("1")),
        CategoryAmount(category="Utilities", amount=Decimal("1")),
        CategoryAmount(category="Pets", amount=Decimal("1")),
    ]

    assert total_benchmark(compare(spend, 2)) == Decimal(640)


def test_classify() -> None:
    assert classify(None) == BenchmarkStatus.NO_BENCHMARK
    assert classify(Decimal("0.00")) == BenchmarkStatus.AT_PAR
    assert classify(Decimal("-0.01")) == BenchmarkStatus.BELOW
    assert classify(Decimal("0.01")) == BenchmarkStatus.ABOVE
