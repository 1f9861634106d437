from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from household_budget.logger import get_logger

logger = get_logger(__name__)


class AnalysisRequest(BaseModel):
    """Loose request body shared by the AI budget endpoints; numbers are clamped later."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    family_id: str | None = None
    months: Any = None
    month: Any = None
    year: Any = None
    include_upcoming_events: Any = None

    @field_validator("family_id", mode="before")
    @classmethod
    def _stringify_family_id(cls, value: Any) -> str | None:
        if value is None or isinstance(value, bool | dict | list):
            return None
        text = str(value).strip()
        return text or None


def parse_analysis_request(body: Any) -> AnalysisRequest:
    if not isinstance(body, dict):
        return AnalysisRequest()
    try:
        return AnalysisRequest.model_validate(body)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed request body: {e}")
        return AnalysisRequest()
