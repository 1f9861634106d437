import calendar
from datetime import date

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def check_month(month: int) -> None:
    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")


def first_day(year: int, month: int) -> date:
    check_month(month)
    return date(year, month, 1)


def last_day(year: int, month: int) -> date:
    check_month(month)
    return date(year, month, calendar.monthrange(year, month)[1])


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_label(year: int, month: int) -> str:
    check_month(month)
    return f"{MONTH_ABBREVIATIONS[month - 1]} {year}"


def month_name(month: int) -> str:
    check_month(month)
    return MONTH_NAMES[month - 1]


def month_window(months: int, reference: date) -> list[tuple[int, int]]:
    """The ``months`` calendar months ending with ``reference``'s month, oldest first."""
    return [
        shift_month(reference.year, reference.month, -offset)
        for offset in range(months - 1, -1, -1)
    ]


def following_months(year: int, month: int, count: int) -> list[tuple[int, int]]:
    return [shift_month(year, month, offset) for offset in range(1, count + 1)]
