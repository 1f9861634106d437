from collections.abc import Iterable
from datetime import date, timedelta

from household_budget.domain.months import first_day, last_day
from household_budget.models import FinancialRecord, RecurringFrequency, UpcomingEvent


def is_active_in_month(record: FinancialRecord, month: int, year: int) -> bool:
    """
    Decide whether ``record`` counts toward the given calendar month.

    Recurring records are active from the month containing their start date
    (``recurring_start_date``, else ``created_at``) up to and including the
    month containing ``recurring_end_date``. Yearly records are further limited
    to their anniversary month. Weekly records count as present for every month
    they span; occurrence counts are not multiplied in.

    One-off records are active only in the month of ``payment_date`` (else
    ``created_at``).
    """
    month_start = first_day(year, month)
    month_end = last_day(year, month)

    if not record.is_recurring:
        effective_date = record.effective_payment_date
        if effective_date is None:
            return False
        return month_start <= effective_date <= month_end

    start_date = record.recurrence_start
    if start_date is not None and month_end < start_date:
        return False
    if record.recurring_end_date is not None and month_start > record.recurring_end_date:
        return False

    if record.recurring_frequency == RecurringFrequency.YEARLY:
        # Without any start date there is no anniversary month to match.
        return start_date is not None and start_date.month == month

    return True


def filter_active(records: Iterable[FinancialRecord], month: int, year: int) -> list[FinancialRecord]:
    return [record for record in records if is_active_in_month(record, month, year)]


def upcoming_costed(events: Iterable[UpcomingEvent], start: date, days: int) -> list[UpcomingEvent]:
    """Events with a positive cost dated from ``start`` to ``start + days`` inclusive, soonest first."""
    end = start + timedelta(days=days)
    selected = [event for event in events if event.cost > 0 and start <= event.event_date <= end]
    return sorted(selected, key=lambda event: event.event_date)
