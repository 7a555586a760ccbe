from datetime import date, datetime

import pytest

from calendar_logic import (
    GRID_SIZE,
    build_month,
    iso_weekday,
    shift_month,
)


@pytest.mark.parametrize("year,month", [(2024, 2), (2023, 2), (2024, 1), (2024, 9), (2026, 3)])
def test_always_42_cells(year, month):
    cells = build_month(year, month)
    assert len(cells) == GRID_SIZE
    days = [c.calendar_date for c in cells]
    assert all((b - a).days == 1 for a, b in zip(days, days[1:]))
    assert days[0].isoweekday() == 1


def test_february_2024_starts_on_preceding_monday():
    cells = build_month(2024, 2)
    assert cells[0].calendar_date == date(2024, 1, 29)
    assert cells[-1].calendar_date == date(2024, 3, 10)
    assert [c.is_other_month for c in cells[:3]] == [True, True, True]
    assert not cells[3].is_other_month


def test_month_starting_on_monday_has_no_leading_padding():
    cells = build_month(2024, 1)
    assert cells[0].calendar_date == date(2024, 1, 1)
    assert not cells[0].is_other_month


def test_month_starting_on_sunday():
    assert iso_weekday(date(2024, 9, 1)) == 7
    cells = build_month(2024, 9)
    assert cells[0].calendar_date == date(2024, 8, 26)
    assert cells[6].calendar_date == date(2024, 9, 1)


def test_recurring_holiday_flags_one_cell():
    cells = build_month(2023, 12, holidays={datetime(1970, 1, 1)})
    flagged = [c.calendar_date for c in cells if c.is_holiday]
    assert flagged == [date(2024, 1, 1)]


def test_exact_holiday_only_matches_its_year():
    holidays = {datetime(2023, 12, 25)}
    assert [c.calendar_date for c in build_month(2023, 12, holidays=holidays) if c.is_holiday] \
        == [date(2023, 12, 25)]
    assert not any(c.is_holiday for c in build_month(2024, 12, holidays=holidays))


def test_today_and_selected_flags():
    cells = build_month(2024, 2, today=date(2024, 2, 14),
                        selected=datetime(2024, 2, 20, 13, 45))
    assert [c.calendar_date for c in cells if c.is_today] == [date(2024, 2, 14)]
    assert [c.calendar_date for c in cells if c.is_selected] == [date(2024, 2, 20)]


def test_weekend_columns():
    cells = build_month(2024, 2)
    rows = [cells[i:i + 7] for i in range(0, GRID_SIZE, 7)]
    assert len(rows) == 6
    for row in rows:
        assert len(row) == 7
        assert [c.is_weekend for c in row] == [False] * 5 + [True] * 2
        assert row[5].calendar_date.isoweekday() == 6


def test_month_arithmetic():
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 11, 3) == (2025, 2)
    assert shift_month(2024, 5, -17) == (2022, 12)
