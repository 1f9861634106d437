from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal

from household_budget.models import (
    BenchmarkComparison,
    CashFlow,
    CategoryAmount,
    CategoryShare,
    Forecast,
    MonthSummary,
    UpcomingEvent,
)


@dataclass(frozen=True)
class ForecastBrief:
    recent_months: list[MonthSummary]
    forecast: Forecast
    upcoming_events: list[UpcomingEvent] = field(default_factory=list)


@dataclass(frozen=True)
class BenchmarkBrief:
    family_size: int
    location: str
    monthly_income: Decimal
    top_categories: list[CategoryAmount]
    comparisons: list[BenchmarkComparison] = field(default_factory=list)


@dataclass(frozen=True)
class InsightsBrief:
    family_size: int
    location: str
    month_name: str
    cash_flow: CashFlow
    categories: list[CategoryShare]


class Narrator(ABC):
    """Turns summarised numbers into prose. ``None`` means no text was produced."""

    @abstractmethod
    def forecast_summary(self, brief: ForecastBrief) -> str | None:
        pass

    @abstractmethod
    def benchmark_analysis(self, brief: BenchmarkBrief) -> str | None:
        pass

    @abstractmethod
    def budget_insights(self, brief: InsightsBrief) -> str | None:
        pass

    @abstractmethod
    def budget_recommendations(self, brief: InsightsBrief) -> str | None:
        pass
