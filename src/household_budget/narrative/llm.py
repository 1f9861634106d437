import os

from openai import OpenAI

from household_budget.logger import get_logger

from .base import BenchmarkBrief, ForecastBrief, InsightsBrief, Narrator

logger = get_logger(__name__)

MAX_PROMPT_CHARS = 12000
TRUNCATION_NOTE = "\n\n[Truncated due to length]"


def _gbp(value: object) -> str:
    return f"£{float(value):,.2f}"  # type: ignore[arg-type]


def clip_prompt(prompt: str) -> str:
    trimmed = prompt.strip()
    if len(trimmed) <= MAX_PROMPT_CHARS:
        return trimmed
    return f"{trimmed[:MAX_PROMPT_CHARS]}{TRUNCATION_NOTE}"


class LLMNarrator(Narrator):
    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        timeout: float = 20.0,
        max_retries: int = 2,
    ):
        self.client = OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
            timeout=timeout,
            max_retries=max_retries,
        )
        self.model = model

    def _complete(self, feature: str, instructions: str, prompt: str) -> str | None:
        try:
            response = self.client.responses.create(
                model=self.model,
                instructions=instructions,
                input=clip_prompt(prompt),
                temperature=0.3,
            )
        except Exception as e:
            logger.error(f"[NARRATIVE] {feature} request failed: {e}")
            return None

        text = self._extract_output_text(response)
        if not text or not text.strip():
            logger.warning(f"[NARRATIVE] {feature} returned no text.")
            return None
        return text.strip()

    @staticmethod
    def _extract_output_text(response: object) -> str | None:
        output_text = getattr(response, "output_text", None)
        if isinstance(output_text, str) and output_text:
            return output_text

        parts: list[str] = []
        for item in getattr(response, "output", None) or []:
            for block in getattr(item, "content", None) or []:
                if getattr(block, "type", None) in {"output_text", "text"}:
                    text = getattr(block, "text", None)
                    if isinstance(text, str) and text:
                        parts.append(text)
        return "".join(parts) or None

    def forecast_summary(self, brief: ForecastBrief) -> str | None:
        history = "\n".join(f"- {month.label}: {_gbp(month.total)}" for month in brief.recent_months)
        projected = "\n".join(
            f"- {month.month}: {_gbp(month.total)}" for month in brief.forecast.projections[:3]
        )
        events = "\n".join(
            f"- {event.title}: {_gbp(event.cost)} on {event.event_date.isoformat()}"
            for event in brief.upcoming_events
        )
        calendar = f"Upcoming expenses from calendar:\n{events}" if events else ""
        prompt = f"""
        Recent spending history:
        {history}

        Trend-based projection for the coming months:
        {projected or "- not available"}

        {calendar}

        Predict next month's likely spending and explain the reasoning in 2-3 sentences.
        """
        return self._complete(
            "forecast",
            "You are a financial forecasting assistant. Analyse spending trends and predict next month. "
            "Be realistic and specific.",
            prompt,
        )

    def benchmark_analysis(self, brief: BenchmarkBrief) -> str | None:
        spending = "\n".join(f"- {item.category}: {_gbp(item.amount)}" for item in brief.top_categories)
        prompt = f"""
        Compare this family's spending to UK averages:

        Family: {brief.family_size} people in {brief.location}
        Monthly income: {_gbp(brief.monthly_income)}

        Their spending:
        {spending}

        For the top 3 spending categories, compare to UK average households of similar size.
        Indicate if spending is below average, average, or above average, with specific percentages.
        """
        return self._complete(
            "benchmark",
            "You are a UK financial data analyst. Compare family spending to UK national averages. "
            "Be specific about percentages and amounts. Keep the response brief.",
            prompt,
        )

    def budget_insights(self, brief: InsightsBrief) -> str | None:
        flow = brief.cash_flow
        net = flow.net_savings
        status = "surplus" if net >= 0 else "deficit"
        top = "\n".join(
            f"- {share.category}: {_gbp(share.amount)}" for share in brief.categories[:2]
        )
        prompt = f"""
        Month: {brief.month_name}
        Income: {_gbp(flow.total_income)}
        Expenses: {_gbp(flow.total_expenses)}
        Net: {_gbp(abs(net))} {status}
        Top categories:
        {top or "- none"}

        Start with "Your family received {_gbp(flow.total_income)} income and spent
        {_gbp(flow.total_expenses)}, leaving {_gbp(abs(net))} {status}." Then mention the top
        categories with their amounts and give one specific savings tip for each.
        Keep it to 3-4 sentences and use the exact figures above.
        """
        return self._complete(
            "insights",
            "You are a financial advisor. Analyse budget data and give specific savings suggestions "
            "based on the actual numbers provided.",
            prompt,
        )

    def budget_recommendations(self, brief: InsightsBrief) -> str | None:
        lines = []
        for share in brief.categories:
            line = f"- {share.category}: {_gbp(share.amount)}"
            if share.over_budget and share.budget_limit is not None:
                line += f" ({_gbp(share.amount - share.budget_limit)} over budget)"
            lines.append(line)
        category_lines = "\n".join(lines)
        prompt = f"""
        Family of {brief.family_size}, income {_gbp(brief.cash_flow.total_income)}/month

        Categories spending:
        {category_lines}

        Give 2-3 specific recommendations to improve their budget.
        """
        return self._complete(
            "recommendations",
            "You are a practical UK family finance advisor. Give specific, actionable budget "
            "recommendations. Keep it brief (2-3 points).",
            prompt,
        )
