"""Date <-> string codec for the six-token format language (Y m d H i s)."""

from __future__ import annotations

import calendar
import re
from datetime import datetime
from functools import lru_cache
from typing import NamedTuple

TOKENS = "YmdHis"
DATE_TOKENS = frozenset("dmY")
TIME_TOKENS = frozenset("Hi")

LITERAL = "literal"
TOKEN = "token"

_TOKEN_PATTERNS = {
    "Y": r"([0-9]{4})",
    "m": r"([0-9]{1,2})",
    "d": r"([0-9]{1,2})",
    "H": r"([0-9]{1,2})",
    "i": r"([0-9]{1,2})",
    "s": r"([0-9]{1,2})",
}


# --- errors -----------------------------------------------------------------

class DateFormatError(ValueError):
    """Base class for every codec failure."""


class InvalidFormat(DateFormatError):
    """The format lacks a complete date (d m Y) and time (H i) token set."""


class InvalidDate(DateFormatError):
    """Day/month/year combination outside the calendar."""


class InvalidTimeComponent(DateFormatError):
    """Hour, minute or second out of range."""


class NoMatch(DateFormatError):
    """The text does not have the shape the format describes."""


# --- compiled formats -------------------------------------------------------

class Segment(NamedTuple):
    kind: str
    value: str


class CompiledFormat(NamedTuple):
    segments: tuple[Segment, ...]
    pattern: re.Pattern
    order: str

    @property
    def has_date(self) -> bool:
        return DATE_TOKENS.issubset(self.order)

    @property
    def has_time(self) -> bool:
        return TIME_TOKENS.issubset(self.order)

    @property
    def usable(self) -> bool:
        return self.has_date or self.has_time


@lru_cache(maxsize=64)
def compile_format(fmt: str) -> CompiledFormat:
    """Split *fmt* into literal and token segments.

    Only the first occurrence of a token letter is a token; repeats are
    literal text. Adjacent literal characters are merged into one segment.
    """
    segments: list[Segment] = []
    seen: set[str] = set()
    literal: list[str] = []
    for ch in fmt:
        if ch in TOKENS and ch not in seen:
            if literal:
                segments.append(Segment(LITERAL, "".join(literal)))
                literal = []
            seen.add(ch)
            segments.append(Segment(TOKEN, ch))
        else:
            literal.append(ch)
    if literal:
        segments.append(Segment(LITERAL, "".join(literal)))

    pattern = "".join(
        _TOKEN_PATTERNS[seg.value] if seg.kind == TOKEN else re.escape(seg.value)
        for seg in segments
    )
    order = "".join(seg.value for seg in segments if seg.kind == TOKEN)
    return CompiledFormat(tuple(segments), re.compile(pattern), order)


def ensure_usable(fmt: str) -> CompiledFormat:
    """Return the compiled format or raise InvalidFormat."""
    compiled = compile_format(fmt)
    if not compiled.usable:
        raise InvalidFormat(f"format {fmt!r} has neither a d/m/Y nor an H/i token set")
    return compiled


# --- calendar rules ---------------------------------------------------------

def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def is_valid_date(day: int, month: int, year: int) -> bool:
    """Return True if (day, month, year) names a real Gregorian day."""
    if not 1 <= year <= 9999:
        return False
    if not 1 <= month <= 12:
        return False
    return 1 <= day <= days_in_month(year, month)


# --- serialize / parse ------------------------------------------------------

def serialize(value: datetime | None, fmt: str) -> str:
    """Render *value* with *fmt*; ``None`` renders as an empty string."""
    if value is None:
        return ""
    fields = {
        "Y": f"{value.year:04d}",
        "m": f"{value.month:02d}",
        "d": f"{value.day:02d}",
        "H": f"{getattr(value, 'hour', 0):02d}",
        "i": f"{getattr(value, 'minute', 0):02d}",
        "s": f"{getattr(value, 'second', 0):02d}",
    }
    return "".join(
        fields[seg.value] if seg.kind == TOKEN else seg.value
        for seg in compile_format(fmt).segments
    )


def parse(text: str, fmt: str, base: datetime | None = None) -> datetime:
    """Decode *text* written in *fmt*.

    Captured numbers are assigned by the token's position in the format, so
    ``d.m.Y`` and ``Y-m-d`` share one code path. When the format carries no
    complete date, the calendar day comes from *base* (default: now).
    """
    compiled = ensure_usable(fmt)
    match = compiled.pattern.fullmatch(text)
    if match is None:
        raise NoMatch(f"{text!r} does not match format {fmt!r}")
    units = {token: int(group) for token, group in zip(compiled.order, match.groups())}

    if base is None:
        base = datetime.now()
    year, month, day = base.year, base.month, base.day
    if compiled.has_date:
        year, month, day = units["Y"], units["m"], units["d"]
        if not is_valid_date(day, month, year):
            raise InvalidDate(f"{day:02d}.{month:02d}.{year:04d} is not a calendar date")

    hour = minute = second = 0
    if compiled.has_time:
        hour, minute = units["H"], units["i"]
        if not 0 <= hour <= 23:
            raise InvalidTimeComponent(f"hour {hour} out of range")
        if not 0 <= minute <= 59:
            raise InvalidTimeComponent(f"minute {minute} out of range")
    if "s" in units:
        second = units["s"]
        if not 0 <= second <= 59:
            raise InvalidTimeComponent(f"second {second} out of range")

    return datetime(year, month, day, hour, minute, second)


def is_valid(text: str, fmt: str) -> bool:
    """True if *text* parses with *fmt*."""
    try:
        parse(text, fmt)
    except DateFormatError:
        return False
    return True
