import asyncio
from datetime import datetime
from decimal import Decimal

from household_budget.core import settings
from household_budget.domain.months import month_name
from household_budget.engine.aggregator import (
    build_cash_flow,
    build_monthly_summaries,
    category_breakdown,
    summarise_month,
)
from household_budget.engine.benchmark import compare, total_benchmark
from household_budget.engine.dedup import dedupe
from household_budget.engine.projector import project
from household_budget.engine.resolver import filter_active, upcoming_costed
from household_budget.engine.taxonomy import normalize_category
from household_budget.integration.household import HouseholdClient
from household_budget.logger import get_logger
from household_budget.manager import NarrativeService
from household_budget.models import (
    ZERO,
    BenchmarkReport,
    CategoryAmount,
    FinancialRecord,
    ForecastReport,
    ForecastStats,
    InsightsData,
    InsightsReport,
    RecordKind,
    ReportMetadata,
    SummariesReport,
    TrendDirection,
    UpcomingEvent,
)
from household_budget.narrative.base import BenchmarkBrief, ForecastBrief, InsightsBrief
from household_budget.services.household_data import fetch_events, fetch_records, household_size

logger = get_logger(__name__)

NO_EXPENSES_FORECAST = (
    "No expenses recorded yet. Add recurring or one-off expenses to generate a forecast."
)
NO_EXPENSES_BENCHMARK = (
    "No expenses recorded yet so we cannot compare to UK averages. "
    "Add category spending to unlock benchmarking insights."
)
ZERO_SPEND_BENCHMARK = (
    "Recent expenses exist but amounts are zero, so benchmarking is not available."
)
NARRATIVE_MONTHS = 3
NARRATIVE_TOP_CATEGORIES = 5


class BudgetAnalysisPipeline:
    def __init__(
        self,
        household: HouseholdClient,
        narrative: NarrativeService,
        *,
        location: str | None = None,
    ) -> None:
        self.household = household
        self.narrative = narrative
        self.location = location or settings.BENCHMARK_LOCATION

    async def _family_records(
        self, family_id: str
    ) -> tuple[dict | None, list[FinancialRecord], list[FinancialRecord]]:
        family = await self.household.get_family(family_id, raise_on_error=True)
        if family is None:
            return None, [], []
        income, expenses = await asyncio.gather(
            fetch_records(self.household, family_id, RecordKind.INCOME, raise_on_error=True),
            fetch_records(self.household, family_id, RecordKind.EXPENSE, raise_on_error=True),
        )
        return family, income, expenses

    async def month_records(
        self,
        family_id: str,
        kind: RecordKind,
        month_filter: tuple[int, int] | None,
    ) -> list[FinancialRecord]:
        records = await fetch_records(self.household, family_id, kind, raise_on_error=True)
        if month_filter is None:
            return records
        month, year = month_filter
        return filter_active(dedupe(records), month, year)

    async def summaries(self, family_id: str, months: int, now: datetime) -> SummariesReport:
        income, expenses = await asyncio.gather(
            fetch_records(self.household, family_id, RecordKind.INCOME, raise_on_error=True),
            fetch_records(self.household, family_id, RecordKind.EXPENSE, raise_on_error=True),
        )
        reference = now.date()
        return SummariesReport(
            income=build_monthly_summaries(income, months=months, reference_date=reference),
            expenses=build_monthly_summaries(expenses, months=months, reference_date=reference),
        )

    async def forecast(
        self,
        family_id: str,
        months: int,
        now: datetime,
        *,
        include_upcoming_events: bool = True,
    ) -> ForecastReport | None:
        family, income, expenses = await self._family_records(family_id)
        if family is None:
            return None

        metadata = ReportMetadata(
            months_analyzed=months,
            generated_at=now,
            family_size=household_size(family),
        )
        if not expenses:
            logger.info("[FORECAST] Family %s has no expenses; returning empty forecast.", family_id)
            return ForecastReport(
                summary=NO_EXPENSES_FORECAST,
                stats=ForecastStats(
                    average_monthly_spend=ZERO,
                    month_over_month_change=ZERO,
                    trend_direction=TrendDirection.FLAT,
                    growth_rate=ZERO,
                ),
                metadata=metadata,
            )

        reference = now.date()
        historical_expenses = build_monthly_summaries(expenses, months=months, reference_date=reference)
        historical_income = build_monthly_summaries(income, months=months, reference_date=reference)

        horizon = min(settings.MAX_PROJECTION_HORIZON, months)
        forecast = project(historical_expenses, horizon, reference_date=reference)
        upcoming_events: list[UpcomingEvent] = []
        if include_upcoming_events:
            upcoming_events = upcoming_costed(
                await fetch_events(self.household, family_id),
                reference,
                settings.UPCOMING_EVENT_WINDOW_DAYS,
            )
        logger.info(
            "[FORECAST] Family %s: %d month(s), trend %s, growth %s, %d upcoming event(s).",
            family_id,
            months,
            forecast.trend_direction.value,
            forecast.growth_rate,
            len(upcoming_events),
        )

        summary = await asyncio.to_thread(
            self.narrative.forecast_summary,
            ForecastBrief(
                recent_months=historical_expenses[-NARRATIVE_MONTHS:],
                forecast=forecast,
                upcoming_events=upcoming_events,
            ),
        )

        return ForecastReport(
            summary=summary,
            historical_expenses=historical_expenses,
            historical_income=historical_income,
            stats=ForecastStats(
                average_monthly_spend=forecast.average_monthly_spend,
                month_over_month_change=forecast.mom_change,
                trend_direction=forecast.trend_direction,
                growth_rate=forecast.growth_rate,
                latest_month_total=forecast.latest_month_total,
                latest_income_total=historical_income[-1].total if historical_income else ZERO,
            ),
            projection=forecast.projections,
            upcoming_events=upcoming_events,
            metadata=metadata,
        )

    async def benchmark(self, family_id: str, months: int, now: datetime) -> BenchmarkReport | None:
        family, income, expenses = await self._family_records(family_id)
        if family is None:
            return None

        size = household_size(family)
        metadata = ReportMetadata(months_analyzed=months, generated_at=now, family_size=size)
        if not expenses:
            return BenchmarkReport(analysis=NO_EXPENSES_BENCHMARK, metadata=metadata)

        reference = now.date()
        latest_expenses = build_monthly_summaries(expenses, months=months, reference_date=reference)[-1]
        latest_income = build_monthly_summaries(income, months=months, reference_date=reference)[-1]
        spend = [item for item in latest_expenses.categories if item.amount > 0]
        if not spend:
            return BenchmarkReport(analysis=ZERO_SPEND_BENCHMARK, metadata=metadata)

        comparisons = compare(spend, size)
        logger.info(
            "[BENCHMARK] Family %s (%d people): %d categor%s compared.",
            family_id,
            size,
            len(comparisons),
            "y" if len(comparisons) == 1 else "ies",
        )

        top = sorted(spend, key=lambda item: item.amount, reverse=True)[:NARRATIVE_TOP_CATEGORIES]
        brief = BenchmarkBrief(
            family_size=size,
            location=self.location,
            monthly_income=latest_income.total,
            top_categories=[
                CategoryAmount(category=normalize_category(item.category) or item.category, amount=item.amount)
                for item in top
            ],
            comparisons=comparisons,
        )
        analysis = await asyncio.to_thread(self.narrative.benchmark_analysis, brief)

        return BenchmarkReport(
            analysis=analysis,
            comparisons=comparisons,
            metadata=metadata.model_copy(update={
                "average_monthly_income": latest_income.total,
                "average_benchmark_spend": total_benchmark(comparisons),
            }),
        )

    async def insights(self, family_id: str, month: int, year: int) -> InsightsReport | None:
        family, income, expenses = await self._family_records(family_id)
        if family is None:
            return None

        size = household_size(family)
        income_summary = summarise_month(income, month, year)
        expense_summary = summarise_month(expenses, month, year)
        cash_flow = build_cash_flow(income_summary, expense_summary)
        brief = InsightsBrief(
            family_size=size,
            location=self.location,
            month_name=month_name(month),
            cash_flow=cash_flow,
            categories=category_breakdown(expense_summary),
        )

        insights = await asyncio.to_thread(self.narrative.budget_insights, brief)
        recommendations = None
        threshold = cash_flow.total_income * Decimal(str(settings.RECOMMENDATION_SPEND_RATIO))
        if cash_flow.total_expenses > threshold:
            recommendations = await asyncio.to_thread(self.narrative.budget_recommendations, brief)

        return InsightsReport(
            insights=insights,
            recommendations=recommendations,
            data=InsightsData(
                month_name=brief.month_name,
                month=month,
                year=year,
                family_size=size,
                cash_flow=cash_flow,
                expenses_by_category=brief.categories,
            ),
        )
