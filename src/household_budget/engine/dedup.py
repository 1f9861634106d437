from collections.abc import Iterable
from datetime import timezone

from household_budget.logger import get_logger
from household_budget.models import FinancialRecord, RecordKind

logger = get_logger(__name__)

IdentityKey = tuple[RecordKind, str, str]


def identity_key(record: FinancialRecord) -> IdentityKey:
    return (record.kind, record.name or "", record.category or "")


def _creation_order(record: FinancialRecord) -> tuple[int, float, str]:
    created_at = record.created_at
    if created_at is None:
        return (1, 0.0, record.id)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (0, created_at.timestamp(), record.id)


def dedupe(records: Iterable[FinancialRecord]) -> list[FinancialRecord]:
    """
    Collapse recurring rows stored more than once under the same identity.

    Rows sharing ``(kind, name, category)`` with ``is_recurring`` set are one
    logical item; the earliest created row survives. One-off rows always pass
    through. Surviving recurring rows come first, in first-seen order.
    """
    survivors: dict[IdentityKey, FinancialRecord] = {}
    one_off: list[FinancialRecord] = []
    collapsed = 0

    for record in records:
        if not record.is_recurring:
            one_off.append(record)
            continue

        key = identity_key(record)
        current = survivors.get(key)
        if current is None:
            survivors[key] = record
            continue

        collapsed += 1
        if _creation_order(record) < _creation_order(current):
            survivors[key] = record

    if collapsed:
        logger.debug("[DEDUP] Collapsed %d duplicate recurring row(s).", collapsed)

    return [*survivors.values(), *one_off]
