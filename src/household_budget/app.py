import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from household_budget.api.routes import analysis, budget, health
from household_budget.core import settings
from household_budget.integration.household import HouseholdClient
from household_budget.logger import get_logger, setup_logging
from household_budget.manager import NarrativeService
from household_budget.services.analysis import BudgetAnalysisPipeline

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        if not os.getenv("HOUSEHOLD_API_URL"):
            logger.warning("HOUSEHOLD_API_URL not set. Budget endpoints will report store failures.")

        household = HouseholdClient()
        narrative = NarrativeService()
        pipeline = BudgetAnalysisPipeline(household=household, narrative=narrative)

        app.state.household = household
        app.state.narrative = narrative
        app.state.pipeline = pipeline

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        await household.aclose()

    app = FastAPI(title="Household Budget Engine", lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(budget.router)
    app.include_router(analysis.router)

    return app


app = create_app()
