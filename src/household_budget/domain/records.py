from typing import Any

from pydantic import ValidationError

from household_budget.logger import get_logger
from household_budget.models import FinancialRecord, RecordKind, UpcomingEvent

logger = get_logger(__name__)

_NAME_KEYS = {
    RecordKind.INCOME: ("incomeName", "income_name", "name"),
    RecordKind.EXPENSE: ("expenseName", "expense_name", "name"),
}


def _first_present(row: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def build_record(row: dict[str, Any], kind: RecordKind) -> FinancialRecord:
    """Build a record from a store row; the store names the label per kind."""
    payload = dict(row)
    payload["kind"] = kind
    payload["name"] = _first_present(row, _NAME_KEYS[kind])
    if kind is RecordKind.INCOME:
        payload.pop("budgetLimit", None)
        payload.pop("budget_limit", None)
    return FinancialRecord.model_validate(payload)


def parse_records(rows: list[dict[str, Any]] | None, kind: RecordKind) -> list[FinancialRecord]:
    records: list[FinancialRecord] = []
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning("[STORE] Skipping %s row of type %s.", kind.value, type(row).__name__)
            continue
        try:
            records.append(build_record(row, kind))
        except ValidationError as exc:
            logger.warning(
                "[STORE] Skipping invalid %s row %s: %s",
                kind.value,
                row.get("id", "<no id>"),
                exc.errors(include_url=False),
            )
    return records


def record_payload(record: FinancialRecord) -> dict[str, Any]:
    """JSON-ready view of a record with the store's name key restored."""
    payload = record.model_dump(mode="json", by_alias=True)
    name_key = "incomeName" if record.kind is RecordKind.INCOME else "expenseName"
    payload[name_key] = payload.pop("name")
    return payload


def build_event(row: dict[str, Any]) -> UpcomingEvent:
    person = row.get("person")
    person_name = _first_present(row, ("personName", "person_name"))
    if person_name is None and isinstance(person, dict):
        person_name = person.get("name")
    return UpcomingEvent.model_validate({
        "id": row.get("id"),
        "title": row.get("title"),
        "date": _first_present(row, ("date", "eventDate", "event_date")),
        "cost": row.get("cost") or 0,
        "person_name": person_name,
        "event_type": _first_present(row, ("eventType", "event_type", "type")),
    })


def parse_events(rows: list[dict[str, Any]] | None) -> list[UpcomingEvent]:
    """Calendar rows as events; rows without a usable date or cost are dropped."""
    events: list[UpcomingEvent] = []
    for row in rows or []:
        if not isinstance(row, dict):
            logger.warning("[STORE] Skipping event row of type %s.", type(row).__name__)
            continue
        try:
            events.append(build_event(row))
        except ValidationError as exc:
            logger.warning(
                "[STORE] Skipping invalid event row %s: %s",
                row.get("id", "<no id>"),
                exc.errors(include_url=False),
            )
    return events
