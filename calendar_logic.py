"""Month grid model and month arithmetic for the picker, free of UI code."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

GRID_ROWS = 6
GRID_COLS = 7
GRID_SIZE = GRID_ROWS * GRID_COLS

# Holidays stored with this year recur on the same day every year
RECURRING_YEAR = 1970


@dataclass(frozen=True)
class GridCell:
    calendar_date: date
    is_other_month: bool = False
    is_today: bool = False
    is_selected: bool = False
    is_holiday: bool = False
    is_weekend: bool = False


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def iso_weekday(d: date) -> int:
    """Monday=1 .. Sunday=7."""
    return d.isoweekday()


def _holiday_lookup(holidays: Iterable[date | datetime]
                    ) -> tuple[set[tuple[int, int]], set[date]]:
    recurring: set[tuple[int, int]] = set()
    exact: set[date] = set()
    for h in holidays:
        if h.year == RECURRING_YEAR:
            recurring.add((h.month, h.day))
        else:
            exact.add(_as_date(h))
    return recurring, exact


def build_month(year: int, month: int,
                today: date | datetime | None = None,
                selected: date | datetime | None = None,
                holidays: Iterable[date | datetime] = ()) -> list[GridCell]:
    """Return the 42 cells (6 weeks, Monday first) shown for a month.

    The grid starts on the Monday on or before the first of the month and
    always spans six full weeks, so the calendar height stays constant.
    """
    first = date(year, month, 1)
    anchor = first - timedelta(days=iso_weekday(first) - 1)
    today_d = _as_date(today)
    selected_d = _as_date(selected)
    recurring, exact = _holiday_lookup(holidays)

    cells: list[GridCell] = []
    for i in range(GRID_SIZE):
        d = anchor + timedelta(days=i)
        cells.append(GridCell(
            calendar_date=d,
            is_other_month=(d.month, d.year) != (month, year),
            is_today=d == today_d,
            is_selected=d == selected_d,
            is_holiday=(d.month, d.day) in recurring or d in exact,
            is_weekend=i % GRID_COLS >= 5,
        ))
    return cells


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Return (year, month) moved by *delta* months."""
    y, m = divmod(year * 12 + (month - 1) + delta, 12)
    return y, m + 1
