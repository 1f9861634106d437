from household_budget.models import BenchmarkStatus, TrendDirection

from .base import BenchmarkBrief, ForecastBrief, InsightsBrief, Narrator


def _gbp(value: object) -> str:
    return f"£{float(value):,.2f}"  # type: ignore[arg-type]


def _join(items: list[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


class TemplateNarrator(Narrator):
    """Deterministic sentences built from the numbers; never returns ``None``."""

    def forecast_summary(self, brief: ForecastBrief) -> str:
        forecast = brief.forecast
        months = len(brief.recent_months)
        if not months:
            return "Not enough spending history to forecast yet."

        sentences = [
            f"Spending averaged {_gbp(forecast.average_monthly_spend)} a month over the last "
            f"{months} month{'s' if months != 1 else ''}."
        ]
        change = abs(float(forecast.mom_change)) * 100
        if forecast.trend_direction == TrendDirection.RISING:
            sentences.append(f"The latest month came to {_gbp(forecast.latest_month_total)}, up {change:.1f}% on the month before.")
        elif forecast.trend_direction == TrendDirection.FALLING:
            sentences.append(f"The latest month came to {_gbp(forecast.latest_month_total)}, down {change:.1f}% on the month before.")
        else:
            sentences.append(f"The latest month came to {_gbp(forecast.latest_month_total)}, level with the month before.")

        if forecast.projections:
            upcoming = forecast.projections[0]
            sentences.append(f"If the trend holds, {upcoming.month} is projected at about {_gbp(upcoming.total)}.")
        if brief.upcoming_events:
            titles = [event.title or "an event" for event in brief.upcoming_events[:3]]
            if len(brief.upcoming_events) > 3:
                titles.append(f"{len(brief.upcoming_events) - 3} more")
            total = sum(event.cost for event in brief.upcoming_events)
            sentences.append(f"Calendar events add about {_gbp(total)} on top ({_join(titles)}).")
        return " ".join(sentences)

    def benchmark_analysis(self, brief: BenchmarkBrief) -> str:
        grouped: dict[BenchmarkStatus, list[str]] = {status: [] for status in BenchmarkStatus}
        for item in brief.comparisons:
            grouped[item.status].append(item.category)

        clauses = []
        if grouped[BenchmarkStatus.ABOVE]:
            clauses.append(f"above average for {_join(grouped[BenchmarkStatus.ABOVE])}")
        if grouped[BenchmarkStatus.BELOW]:
            clauses.append(f"below average for {_join(grouped[BenchmarkStatus.BELOW])}")
        if grouped[BenchmarkStatus.AT_PAR]:
            clauses.append(f"in line with the average for {_join(grouped[BenchmarkStatus.AT_PAR])}")

        people = "person" if brief.family_size == 1 else "people"
        intro = f"Compared with typical {brief.family_size}-{people} households in {brief.location}"
        if clauses:
            text = f"{intro}, your spending is {'; '.join(clauses)}."
        else:
            text = f"{intro}, there is no matched category spending to compare yet."

        unmatched = grouped[BenchmarkStatus.NO_BENCHMARK]
        if unmatched:
            text += f" No benchmark is available for {_join(unmatched)}."
        return text

    def budget_insights(self, brief: InsightsBrief) -> str:
        flow = brief.cash_flow
        net = flow.net_savings
        status = "surplus" if net >= 0 else "deficit"
        sentences = [
            f"Your family received {_gbp(flow.total_income)} income and spent "
            f"{_gbp(flow.total_expenses)} in {brief.month_name}, leaving a {_gbp(abs(net))} {status}."
        ]
        top = brief.categories[:2]
        if top:
            described = [f"{share.category} ({_gbp(share.amount)})" for share in top]
            noun = "expense was" if len(top) == 1 else "expenses were"
            sentences.append(f"Your biggest {noun} {_join(described)}.")
        sentences.append(f"Your savings rate is {float(flow.savings_rate):.1f}%.")
        return " ".join(sentences)

    def budget_recommendations(self, brief: InsightsBrief) -> str:
        points: list[str] = []
        over = [share for share in brief.categories if share.over_budget and share.budget_limit is not None]
        for share in over[:2]:
            points.append(
                f"Bring {share.category} back within its {_gbp(share.budget_limit)} limit "
                f"(currently {_gbp(share.amount - share.budget_limit)} over)."
            )
        if float(brief.cash_flow.savings_rate) < 10:
            points.append("Aim to save at least 10-20% of income each month.")
        if brief.categories and len(points) < 3:
            points.append(f"Review {brief.categories[0].category} spending for possible reductions.")
        if not points:
            points.append("Keep tracking every expense so the budget stays visible.")
        return "\n".join(f"{index}. {point}" for index, point in enumerate(points, start=1))
