import math
from datetime import date
from typing import Any

from household_budget.domain.records import parse_events, parse_records
from household_budget.integration.household import HouseholdClient
from household_budget.logger import get_logger
from household_budget.models import FinancialRecord, RecordKind, UpcomingEvent

logger = get_logger(__name__)


def coerce_int(value: Any) -> int | None:
    """Best-effort integer from query/body input; ``None`` when unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.floor(value) if math.isfinite(value) else None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return int(stripped)
        except ValueError:
            pass
        try:
            parsed = float(stripped)
        except ValueError:
            return None
        return math.floor(parsed) if math.isfinite(parsed) else None
    return None


def coerce_flag(value: Any, default: bool = True) -> bool:
    """Loose boolean; only recognisable yes/no values override ``default``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes", "on"}:
            return True
        if normalized in {"false", "0", "no", "off"}:
            return False
    return default


def clamp_months(value: Any, bounds: tuple[int, int, int]) -> int:
    """Clamp a window size to ``(minimum, default, maximum)``; unusable input gets the default."""
    minimum, default, maximum = bounds
    months = coerce_int(value)
    if not months:
        return default
    return min(max(months, minimum), maximum)


def resolve_month_filter(month: Any, year: Any, today: date) -> tuple[int, int] | None:
    """
    Turn loose ``month``/``year`` input into ``(month, year)``.

    Neither given means no filtering. A lone month takes the current year and a
    lone year the current month; months outside 1..12 are clamped and years
    outside the calendar range fall back to the current year.
    """
    month_value = coerce_int(month)
    year_value = coerce_int(year)
    if month_value is None and year_value is None:
        return None
    if month_value is None:
        month_value = today.month
    if year_value is None or not date.min.year <= year_value <= date.max.year:
        year_value = today.year
    return min(max(month_value, 1), 12), year_value


def household_size(family: dict[str, Any] | None) -> int:
    if not family:
        return 0
    members = family.get("members")
    if isinstance(members, list):
        return len(members)
    for key in ("memberCount", "familySize"):
        size = coerce_int(family.get(key))
        if size is not None:
            return max(size, 0)
    return 0


async def fetch_records(
    household: HouseholdClient,
    family_id: str,
    kind: RecordKind,
    *,
    raise_on_error: bool = False,
) -> list[FinancialRecord]:
    if kind is RecordKind.INCOME:
        rows = await household.get_income(family_id, raise_on_error=raise_on_error)
    else:
        rows = await household.get_expenses(family_id, raise_on_error=raise_on_error)
    records = parse_records(rows, kind)
    logger.debug(
        "[STORE] Parsed %d/%d %s record(s) for family %s.",
        len(records),
        len(rows),
        kind.value,
        family_id,
    )
    return records


async def fetch_events(household: HouseholdClient, family_id: str) -> list[UpcomingEvent]:
    """Calendar events for a family; a failed read yields none rather than failing the caller."""
    rows = await household.get_events(family_id)
    events = parse_events(rows)
    logger.debug("[STORE] Parsed %d/%d event(s) for family %s.", len(events), len(rows), family_id)
    return events
