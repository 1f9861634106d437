import os
from collections.abc import Callable

from household_budget.core import settings
from household_budget.logger import get_logger
from household_budget.narrative.base import BenchmarkBrief, ForecastBrief, InsightsBrief, Narrator
from household_budget.narrative.llm import LLMNarrator
from household_budget.narrative.templates import TemplateNarrator

logger = get_logger(__name__)


class NarrativeService:
    def __init__(self, narrators: list[Narrator] | None = None):
        self.template = TemplateNarrator()
        self.llm: LLMNarrator | None = None

        if narrators is not None:
            self.narrators = list(narrators)
            return

        self.narrators = []

        # 1. LLM narrator, only with an API key
        api_key = os.getenv("OPENAI_API_KEY")
        if api_key:
            model = os.getenv("OPENAI_MODEL") or settings.DEFAULT_OPENAI_MODEL
            base_url = os.getenv("OPENAI_BASE_URL")
            self.llm = LLMNarrator(
                api_key=api_key,
                model=model,
                base_url=base_url,
                timeout=settings.NARRATIVE_TIMEOUT,
                max_retries=settings.NARRATIVE_MAX_RETRIES,
            )
            self.narrators.append(self.llm)
            logger.info(f"LLM narrator enabled: model={model}, base_url={base_url or 'default'}")
        else:
            logger.warning("OPENAI_API_KEY not found. Using template narratives only.")

        # 2. Template narrator (always succeeds)
        self.narrators.append(self.template)

    def _first_text(self, feature: str, call: Callable[[Narrator], str | None]) -> str:
        for narrator in self.narrators:
            narrator_name = narrator.__class__.__name__
            try:
                text = call(narrator)
            except Exception as e:
                logger.error(f"[NARRATIVE] {narrator_name} failed on {feature}: {e}")
                continue
            if isinstance(text, str) and text.strip():
                logger.debug(f"[NARRATIVE] {feature} produced by {narrator_name}")
                return text
            logger.debug(f"[NARRATIVE] {narrator_name} produced no {feature}; trying next")

        # The template narrator is the floor even when a custom chain omits it.
        return call(self.template) or ""

    def forecast_summary(self, brief: ForecastBrief) -> str:
        return self._first_text("forecast", lambda n: n.forecast_summary(brief))

    def benchmark_analysis(self, brief: BenchmarkBrief) -> str:
        return self._first_text("benchmark", lambda n: n.benchmark_analysis(brief))

    def budget_insights(self, brief: InsightsBrief) -> str:
        return self._first_text("insights", lambda n: n.budget_insights(brief))

    def budget_recommendations(self, brief: InsightsBrief) -> str:
        return self._first_text("recommendations", lambda n: n.budget_recommendations(brief))
