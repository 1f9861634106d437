from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from household_budget.logger import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")
RATE_STEP = Decimal("0.0001")
ZERO = Decimal("0")


def _quantize(value: Decimal, step: Decimal) -> Decimal:
    # quantize needs room for every integer digit plus the fractional places.
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - step.as_tuple().exponent + 2)
        return value.quantize(step, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> Decimal:
    return _quantize(value, CENT)


def round_rate(value: Decimal) -> Decimal:
    return _quantize(value, RATE_STEP)


# Amounts stay exact Decimals in memory and become 2-place floats on the wire.
Money = Annotated[Decimal, PlainSerializer(lambda v: float(round_money(v)), return_type=float)]
Rate = Annotated[Decimal, PlainSerializer(lambda v: float(round_rate(v)), return_type=float)]


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Ignoring unparseable date value '%s'.", value)
            return None
    raise ValueError(f"unsupported date value: {value!r}")


class RecordKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class RecurringFrequency(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    YEARLY = "yearly"


class TrendDirection(str, Enum):
    RISING = "rising"
    FALLING = "falling"
    FLAT = "flat"


class BenchmarkStatus(str, Enum):
    NO_BENCHMARK = "no-benchmark"
    AT_PAR = "at-par"
    ABOVE = "above"
    BELOW = "below"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FinancialRecord(CamelModel):
    """
    One stored income or expense row.

    Recurring rows are placed in time by their recurrence window, one-off rows
    by ``payment_date``; ``created_at`` backs up both and breaks dedup ties.
    """
    id: str
    kind: RecordKind
    name: str = ""
    amount: Money = Field(ge=0)
    category: str = ""
    is_recurring: bool = False
    recurring_frequency: RecurringFrequency = RecurringFrequency.MONTHLY
    recurring_start_date: date | None = None
    recurring_end_date: date | None = None
    payment_date: date | None = None
    created_at: datetime | None = None
    budget_limit: Money | None = None
    person_id: str | None = None

    @field_validator("id", "person_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("name", "category", mode="before")
    @classmethod
    def _blank_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("recurring_frequency", mode="before")
    @classmethod
    def _default_frequency(cls, value: Any) -> Any:
        if isinstance(value, RecurringFrequency):
            return value
        normalized = str(value or "").strip().lower()
        if normalized in {item.value for item in RecurringFrequency}:
            return normalized
        return RecurringFrequency.MONTHLY

    @field_validator("recurring_start_date", "recurring_end_date", "payment_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        parsed = parse_timestamp(value)
        return parsed.date() if parsed else None

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @property
    def recurrence_start(self) -> date | None:
        if self.recurring_start_date:
            return self.recurring_start_date
        return self.created_at.date() if self.created_at else None

    @property
    def effective_payment_date(self) -> date | None:
        if self.payment_date:
            return self.payment_date
        return self.created_at.date() if self.created_at else None


class CategoryAmount(CamelModel):
    category: str
    amount: Money
    budget_limit: Money | None = None


class MonthSummary(CamelModel):
    label: str
    month_key: str
    total: Money
    categories: list[CategoryAmount] = Field(default_factory=list)


class CategoryShare(CamelModel):
    category: str
    amount: Money
    percentage: Money
    budget_limit: Money | None = None
    over_budget: bool = False


class CashFlow(CamelModel):
    total_income: Money
    total_expenses: Money
    net_savings: Money
    savings_rate: Money


class ProjectedMonth(CamelModel):
    month: str
    month_key: str
    total: Money
    categories: list[CategoryAmount] = Field(default_factory=list)


class Forecast(CamelModel):
    average_monthly_spend: Money
    mom_change: Rate
    trend_direction: TrendDirection
    growth_rate: Rate
    latest_month_total: Money
    projections: list[ProjectedMonth] = Field(default_factory=list)


class BenchmarkComparison(CamelModel):
    category: str
    actual: Money
    benchmark: Money | None = None
    difference: Money | None = None
    status: BenchmarkStatus


class UpcomingEvent(CamelModel):
    """A dated calendar event that carries a cost."""
    id: str
    title: str = ""
    event_date: date = Field(alias="date")
    cost: Money = Field(ge=0)
    person_name: str | None = None
    event_type: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("title", mode="before")
    @classmethod
    def _blank_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("event_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        parsed = parse_timestamp(value)
        return parsed.date() if parsed else None


# Report envelopes returned by the HTTP layer.

class ForecastStats(CamelModel):
    average_monthly_spend: Money
    month_over_month_change: Rate
    trend_direction: TrendDirection
    growth_rate: Rate
    latest_month_total: Money = ZERO
    latest_income_total: Money = ZERO


class ReportMetadata(CamelModel):
    months_analyzed: int
    generated_at: datetime
    family_size: int
    average_monthly_income: Money | None = None
    average_benchmark_spend: Money | None = None


class ForecastReport(CamelModel):
    summary: str
    historical_expenses: list[MonthSummary] = Field(default_factory=list)
    historical_income: list[MonthSummary] = Field(default_factory=list)
    stats: ForecastStats
    projection: list[ProjectedMonth] = Field(default_factory=list)
    upcoming_events: list[UpcomingEvent] = Field(default_factory=list)
    metadata: ReportMetadata


class BenchmarkReport(CamelModel):
    analysis: str
    comparisons: list[BenchmarkComparison] = Field(default_factory=list)
    metadata: ReportMetadata


class InsightsData(CamelModel):
    month_name: str
    month: int
    year: int
    family_size: int
    cash_flow: CashFlow
    expenses_by_category: list[CategoryShare] = Field(default_factory=list)


class InsightsReport(CamelModel):
    insights: str
    recommendations: str | None = None
    data: InsightsData


class SummariesReport(CamelModel):
    income: list[MonthSummary] = Field(default_factory=list)
    expenses: list[MonthSummary] = Field(default_factory=list)
