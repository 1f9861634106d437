from datetime import datetime, timezone

from fastapi import HTTPException, Request

from household_budget.services.analysis import BudgetAnalysisPipeline


def get_pipeline(request: Request) -> BudgetAnalysisPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if not pipeline:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return pipeline


def get_now() -> datetime:
    return datetime.now(timezone.utc)
