from datetime import date, datetime, timezone
from decimal import Decimal

from household_budget.domain.records import parse_events, parse_records, record_payload
from household_budget.models import RecordKind, RecurringFrequency, round_money, round_rate


def test_parse_expense_row() -> None:
    rows = [{
        "id": 42,
        "expenseName": "Council tax",
        "amount": "145.50",
        "category": "Housing",
        "isRecurring": True,
        "recurringFrequency": "MONTHLY",
        "recurringStartDate": "2025-04-01T00:00:00.000Z",
        "recurringEndDate": None,
        "createdAt": "2025-03-28T12:30:00Z",
        "budgetLimit": "150",
        "personId": 7,
    }]

    [record] = parse_records(rows, RecordKind.EXPENSE)

    assert record.id == "42"
    assert record.kind is RecordKind.EXPENSE
    assert record.name == "Council tax"
    assert record.amount == Decimal("145.50")
    assert record.recurring_frequency is RecurringFrequency.MONTHLY
    assert record.recurring_start_date == date(2025, 4, 1)
    assert record.created_at == datetime(2025, 3, 28, 12, 30, tzinfo=timezone.utc)
    assert record.budget_limit == Decimal("150")
    assert record.person_id == "7"


def test_income_rows_ignore_budget_limit() -> None:
    [record] = parse_records(
        [{"id": "i1", "incomeName": "Salary", "amount": 2500, "category": None, "budgetLimit": 10}],
        RecordKind.INCOME,
    )

    assert record.name == "Salary"
    assert record.category == ""
    assert record.budget_limit is None


def test_unknown_frequency_defaults_to_monthly() -> None:
    [record] = parse_records(
        [{"id": "x", "name": "Box", "amount": 5, "isRecurring": True, "recurringFrequency": "fortnightly"}],
        RecordKind.EXPENSE,
    )

    assert record.recurring_frequency is RecurringFrequency.MONTHLY


def test_invalid_rows_are_skipped() -> None:
    rows = [
        {"id": "ok", "expenseName": "Milk", "amount": "1.20"},
        {"id": "neg", "expenseName": "Refund", "amount": "-3"},
        {"id": "nan", "expenseName": "Bad", "amount": "abc"},
        "not a row",
        {"expenseName": "No id", "amount": "1"},
    ]

    records = parse_records(rows, RecordKind.EXPENSE)  # type: ignore[arg-type]

    assert [r.id for r in records] == ["ok"]


def test_unparseable_dates_become_none() -> None:
    [record] = parse_records(
        [{"id": "d", "expenseName": "Fee", "amount": 1, "paymentDate": "sometime", "createdAt": ""}],
        RecordKind.EXPENSE,
    )

    assert record.payment_date is None
    assert record.created_at is None


def test_record_payload_restores_store_names() -> None:
    [record] = parse_records(
        [{"id": "e1", "expenseName": "Gym", "amount": "29.999", "paymentDate": "2025-10-02"}],
        RecordKind.EXPENSE,
    )

    payload = record_payload(record)

    assert payload["expenseName"] == "Gym"
    assert "name" not in payload
    assert payload["amount"] == 30.0
    assert payload["paymentDate"] == "2025-10-02"
    assert payload["isRecurring"] is False


def test_rounding_keeps_every_integer_digit() -> None:
    huge = Decimal("1000000000000000000000000000000.005")

    assert round_money(huge) == Decimal("1000000000000000000000000000000.01")
    assert round_rate(Decimal("123456789012345678901234567890.12345")) == Decimal(
        "123456789012345678901234567890.1235"
    )
    assert round_money(Decimal("2.345")) == Decimal("2.35")


def test_record_payload_with_very_large_amount() -> None:
    [record] = parse_records(
        [{"id": "big", "expenseName": "Yacht", "amount": "99999999999999999999999999999.999"}],
        RecordKind.EXPENSE,
    )

    assert record_payload(record)["amount"] == 1e29


def test_parse_event_rows() -> None:
    rows = [
        {"id": 9, "title": "Swimming", "eventDate": "2025-11-02T16:00:00.000Z", "cost": "12.5",
         "person": {"name": "Askia"}, "eventType": "sport"},
        {"id": "e2", "title": "Fete", "date": "2025-11-08", "cost": None, "type": "family"},
        {"id": "e3", "title": "No date", "cost": 5},
        {"id": "e4", "title": "Refund", "date": "2025-11-09", "cost": -4},
        "not a row",
    ]

    events = parse_events(rows)  # type: ignore[arg-type]

    assert [(e.id, e.event_date, e.cost, e.person_name, e.event_type) for e in events] == [
        ("9", date(2025, 11, 2), Decimal("12.5"), "Askia", "sport"),
        ("e2", date(2025, 11, 8), Decimal("0"), None, "family"),
    ]
