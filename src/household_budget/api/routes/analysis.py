from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request

from household_budget.api.dependencies import get_now, get_pipeline
from household_budget.api.schemas import AnalysisRequest, parse_analysis_request
from household_budget.core import settings
from household_budget.integration.household import HouseholdAPIError
from household_budget.logger import get_logger
from household_budget.models import BenchmarkReport, ForecastReport, InsightsReport
from household_budget.services.analysis import BudgetAnalysisPipeline
from household_budget.services.household_data import clamp_months, coerce_flag, resolve_month_filter

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ai/budget")


async def _read_body(request: Request) -> AnalysisRequest:
    try:
        body: Any = await request.json()
    except ValueError:
        body = {}
    return parse_analysis_request(body)


def _require_family(req: AnalysisRequest) -> str:
    if not req.family_id:
        raise HTTPException(status_code=400, detail="familyId is required")
    return req.family_id


def _found(report: Any, family_id: str) -> Any:
    if report is None:
        raise HTTPException(status_code=404, detail=f"Family {family_id} not found")
    return report


@router.post("/forecast", response_model=ForecastReport)
async def forecast(
    request: Request,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
) -> ForecastReport:
    req = await _read_body(request)
    family_id = _require_family(req)
    months = clamp_months(req.months, settings.FORECAST_MONTHS)
    include_events = coerce_flag(req.include_upcoming_events)
    try:
        report = await pipeline.forecast(family_id, months, now, include_upcoming_events=include_events)
    except HouseholdAPIError as e:
        logger.error(f"[FORECAST] Store failure for family {family_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to generate forecast") from e
    return _found(report, family_id)


@router.post("/benchmark", response_model=BenchmarkReport)
async def benchmark(
    request: Request,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
) -> BenchmarkReport:
    req = await _read_body(request)
    family_id = _require_family(req)
    months = clamp_months(req.months, settings.BENCHMARK_MONTHS)
    try:
        report = await pipeline.benchmark(family_id, months, now)
    except HouseholdAPIError as e:
        logger.error(f"[BENCHMARK] Store failure for family {family_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to generate benchmark analysis") from e
    return _found(report, family_id)


@router.post("/insights", response_model=InsightsReport)
async def insights(
    request: Request,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
) -> InsightsReport:
    req = await _read_body(request)
    family_id = _require_family(req)
    today = now.date()
    month, year = resolve_month_filter(req.month, req.year, today) or (today.month, today.year)
    try:
        report = await pipeline.insights(family_id, month, year)
    except HouseholdAPIError as e:
        logger.error(f"[INSIGHTS] Store failure for family {family_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to generate insights") from e
    return _found(report, family_id)
