from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException

from household_budget.api.dependencies import get_now, get_pipeline
from household_budget.core import settings
from household_budget.domain.records import record_payload
from household_budget.integration.household import HouseholdAPIError
from household_budget.models import RecordKind, SummariesReport
from household_budget.services.analysis import BudgetAnalysisPipeline
from household_budget.services.household_data import clamp_months, resolve_month_filter

router = APIRouter()


async def _records(
    pipeline: BudgetAnalysisPipeline,
    family_id: str,
    kind: RecordKind,
    month: str | None,
    year: str | None,
    now: datetime,
) -> list[dict[str, Any]]:
    month_filter = resolve_month_filter(month, year, now.date())
    try:
        records = await pipeline.month_records(family_id, kind, month_filter)
    except HouseholdAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return [record_payload(record) for record in records]


@router.get("/api/families/{family_id}/budget/income")
async def get_income(
    family_id: str,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
    month: str | None = None,
    year: str | None = None,
) -> list[dict[str, Any]]:
    return await _records(pipeline, family_id, RecordKind.INCOME, month, year, now)


@router.get("/api/families/{family_id}/budget/expenses")
async def get_expenses(
    family_id: str,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
    month: str | None = None,
    year: str | None = None,
) -> list[dict[str, Any]]:
    return await _records(pipeline, family_id, RecordKind.EXPENSE, month, year, now)


@router.get("/api/families/{family_id}/budget/summaries", response_model=SummariesReport)
async def get_summaries(
    family_id: str,
    pipeline: Annotated[BudgetAnalysisPipeline, Depends(get_pipeline)],
    now: Annotated[datetime, Depends(get_now)],
    months: str | None = None,
) -> SummariesReport:
    window = clamp_months(months, settings.SUMMARY_MONTHS)
    try:
        return await pipeline.summaries(family_id, window, now)
    except HouseholdAPIError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
