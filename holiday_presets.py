"""Named public-holiday presets for Switzerland and Germany.

Fixed-date holidays are emitted once with the recurring year (1970);
Easter-relative ones move every year and are expanded over a year range.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from calendar_logic import RECURRING_YEAR


def _easter(year: int) -> date:
    """Compute Easter Sunday (Anonymous Gregorian algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    el = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * el) // 451
    month, day = divmod(h + el - 7 * m + 114, 31)
    return date(year, month, day + 1)


# --- rules ------------------------------------------------------------------
# A rule maps (start_year, end_year) to the datetimes it contributes.

def _fixed(m: int, d: int):
    return lambda _start, _end: [datetime(RECURRING_YEAR, m, d)]


def _easter_rel(offset: int):
    def fn(start: int, end: int) -> list[datetime]:
        out = []
        for year in range(start, end + 1):
            day = _easter(year) + timedelta(days=offset)
            out.append(datetime(day.year, day.month, day.day))
        return out
    return fn


# --- registry: (key, name, country, rule) -----------------------------------

PRESETS: list[tuple] = [
    # Switzerland
    ("ch_neujahr",        "Neujahr",        "CH", _fixed(1, 1)),
    ("ch_berchtoldstag",  "Berchtoldstag",  "CH", _fixed(1, 2)),
    ("ch_karfreitag",     "Karfreitag",     "CH", _easter_rel(-2)),
    ("ch_ostermontag",    "Ostermontag",    "CH", _easter_rel(1)),
    ("ch_auffahrt",       "Auffahrt",       "CH", _easter_rel(39)),
    ("ch_pfingstmontag",  "Pfingstmontag",  "CH", _easter_rel(50)),
    ("ch_bundesfeier",    "Bundesfeier",    "CH", _fixed(8, 1)),
    ("ch_weihnachten",    "Weihnachten",    "CH", _fixed(12, 25)),
    ("ch_stephanstag",    "Stephanstag",    "CH", _fixed(12, 26)),
    # Germany
    ("de_neujahr",             "Neujahr",                   "DE", _fixed(1, 1)),
    ("de_karfreitag",          "Karfreitag",                "DE", _easter_rel(-2)),
    ("de_ostermontag",         "Ostermontag",               "DE", _easter_rel(1)),
    ("de_tag_der_arbeit",      "Tag der Arbeit",            "DE", _fixed(5, 1)),
    ("de_christi_himmelfahrt", "Christi Himmelfahrt",       "DE", _easter_rel(39)),
    ("de_pfingstmontag",       "Pfingstmontag",             "DE", _easter_rel(50)),
    ("de_tag_dt_einheit",      "Tag der Deutschen Einheit", "DE", _fixed(10, 3)),
    ("de_weihnachten1",        "1. Weihnachtstag",          "DE", _fixed(12, 25)),
    ("de_weihnachten2",        "2. Weihnachtstag",          "DE", _fixed(12, 26)),
]

_BY_KEY = {p[0]: p for p in PRESETS}

COUNTRIES: list[tuple[str, str]] = [
    ("CH", "Switzerland"),
    ("DE", "Germany"),
]


def preset_dates(keys, start_year: int, end_year: int) -> set[datetime]:
    """Expand preset keys (or country codes) into holiday datetimes.

    Raises KeyError for a key that is neither a preset nor a country code.
    """
    countries = {code for code, _name in COUNTRIES}
    result: set[datetime] = set()
    for key in keys:
        if key in countries:
            entries = [p for p in PRESETS if p[2] == key]
        else:
            entries = [_BY_KEY[key]]
        for _key, _name, _country, rule in entries:
            result.update(rule(start_year, end_year))
    return result
