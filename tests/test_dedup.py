import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from household_budget.engine.dedup import dedupe, identity_key
from household_budget.models import FinancialRecord, RecordKind

T1 = datetime(2025, 1, 10, 8, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(days=3)


def _record(record_id: str, **overrides: Any) -> FinancialRecord:
    fields: dict[str, Any] = {
        "id": record_id,
        "kind": RecordKind.EXPENSE,
        "name": "Netflix",
        "amount": Decimal("10.99"),
        "category": "Entertainment",
        "is_recurring": True,
        "created_at": T1,
    }
    fields.update(overrides)
    return FinancialRecord(**fields)


def test_keeps_earliest_created_duplicate() -> None:
    later = _record("later", created_at=T2)
    earlier = _record("earlier", created_at=T1)

    result = dedupe([later, earlier])

    assert [r.id for r in result] == ["earlier"]


def test_one_off_rows_are_never_collapsed() -> None:
    first = _record("a", is_recurring=False)
    second = _record("b", is_recurring=False)

    assert [r.id for r in dedupe([first, second])] == ["a", "b"]


def test_key_separates_kind_name_and_category() -> None:
    expense = _record("e")
    income = _record("i", kind=RecordKind.INCOME)
    renamed = _record("n", name="Spotify")
    recategorised = _record("c", category="Subscriptions")

    result = dedupe([expense, income, renamed, recategorised])

    assert len(result) == 4
    assert len({identity_key(r) for r in result}) == 4


def test_missing_created_at_loses_to_dated_row() -> None:
    undated = _record("undated", created_at=None)
    dated = _record("dated", created_at=T2)

    assert [r.id for r in dedupe([undated, dated])] == ["dated"]


def test_equal_timestamps_break_ties_by_id() -> None:
    b = _record("b")
    a = _record("a")

    assert [r.id for r in dedupe([b, a])] == ["a"]


def test_naive_and_aware_timestamps_compare() -> None:
    naive = _record("naive", created_at=datetime(2025, 1, 9, 8, 0))
    aware = _record("aware", created_at=T1)

    assert [r.id for r in dedupe([aware, naive])] == ["naive"]


def test_recurring_rows_come_before_one_offs() -> None:
    one_off = _record("once", is_recurring=False, name="Cinema")
    recurring = _record("sub")

    assert [r.id for r in dedupe([one_off, recurring])] == ["sub", "once"]


def _mixed_records() -> list[FinancialRecord]:
    records = []
    for index in range(12):
        records.append(_record(
            f"r{index}",
            name=("Netflix", "Rent", "Gym")[index % 3],
            is_recurring=index % 4 != 0,
            created_at=T1 + timedelta(hours=(index * 7) % 11),
        ))
    return records


def test_dedupe_is_idempotent() -> None:
    once = dedupe(_mixed_records())

    assert dedupe(once) == once


def test_survivors_do_not_depend_on_input_order() -> None:
    records = _mixed_records()
    expected = {r.id for r in dedupe(records)}

    shuffled = list(records)
    random.Random(7).shuffle(shuffled)

    assert {r.id for r in dedupe(shuffled)} == expected
