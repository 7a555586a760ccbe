"""Per-field picker configuration: defaults, merging and JSON settings."""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import re
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from date_format import InvalidFormat, ensure_usable
from holiday_presets import preset_dates

logger = logging.getLogger(__name__)

_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".entry-date-picker.json")

DEFAULT_FORMAT = "Y-m-d"
YEAR_SPAN = 10

DEFAULT_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
DEFAULT_WEEKDAY_NAMES = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")


class ConfigError(ValueError):
    """A configuration value that cannot be used."""


@dataclass(frozen=True)
class PickerConfig:
    format: str = DEFAULT_FORMAT
    start_year: int = 0
    end_year: int = 0
    month_names: tuple[str, ...] = DEFAULT_MONTH_NAMES
    weekday_names: tuple[str, ...] = DEFAULT_WEEKDAY_NAMES
    holidays: frozenset = field(default_factory=frozenset)
    time_zone: str = "local"
    placeholder: str = ""


# ------------------------------------------------------------------
# Time zones
# ------------------------------------------------------------------
def resolve_time_zone(name: str | None) -> dt.tzinfo:
    """Resolve "local", "UTC", a fixed offset ("+02:00") or an IANA name.

    Raises ConfigError for identifiers that cannot be resolved.
    """
    s = (name or "").strip()
    low = s.lower()
    if not s or low in {"local", "system"}:
        return dt.datetime.now().astimezone().tzinfo or dt.timezone.utc
    if low in {"utc", "z", "gmt"}:
        return dt.timezone.utc

    m = _OFFSET_RE.match(s)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh, mm = int(hh_s), int(mm_s)
        if hh > 23 or mm > 59:
            raise ConfigError(f"Invalid time zone offset: {s!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(sign * dt.timedelta(hours=hh, minutes=mm))

    try:
        return ZoneInfo(s)
    except (ZoneInfoNotFoundError, ValueError, OSError) as ex:
        raise ConfigError(f"Invalid time zone identifier: {s!r}") from ex


def now_in(name: str | None) -> dt.datetime:
    """Current wall-clock time in the named zone, as a naive datetime."""
    return dt.datetime.now(tz=resolve_time_zone(name)).replace(tzinfo=None, microsecond=0)


# ------------------------------------------------------------------
# Merging
# ------------------------------------------------------------------
def _coerce_holiday(value) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            d = dt.date.fromisoformat(value.strip())
        except ValueError as ex:
            raise ConfigError(f"Invalid holiday {value!r}, expected YYYY-MM-DD") from ex
        return dt.datetime(d.year, d.month, d.day)
    raise ConfigError(f"Invalid holiday {value!r}")


def build_config(overrides: dict | None = None,
                 today: dt.date | None = None) -> PickerConfig:
    """Merge *overrides* over the defaults and validate the result.

    Missing or empty values fall back to their defaults. ``holiday_presets``
    (preset keys or country codes) are expanded over the year range and
    added to ``holidays``.
    """
    overrides = dict(overrides or {})
    today = today or dt.date.today()

    fmt = overrides.get("format") or DEFAULT_FORMAT
    try:
        ensure_usable(fmt)
    except InvalidFormat as ex:
        raise ConfigError(str(ex)) from ex

    start_year = int(overrides.get("start_year") or today.year - YEAR_SPAN)
    end_year = int(overrides.get("end_year") or today.year + YEAR_SPAN)
    if start_year > end_year:
        raise ConfigError(f"start_year {start_year} is after end_year {end_year}")

    month_names = tuple(overrides.get("month_names") or DEFAULT_MONTH_NAMES)
    if len(month_names) != 12:
        raise ConfigError(f"month_names needs 12 entries, got {len(month_names)}")
    weekday_names = tuple(overrides.get("weekday_names") or DEFAULT_WEEKDAY_NAMES)
    if len(weekday_names) != 7:
        raise ConfigError(f"weekday_names needs 7 entries, got {len(weekday_names)}")

    holidays = {_coerce_holiday(h) for h in overrides.get("holidays") or ()}
    presets = overrides.get("holiday_presets") or ()
    try:
        holidays.update(preset_dates(presets, start_year, end_year))
    except KeyError as ex:
        raise ConfigError(f"Unknown holiday preset {ex.args[0]!r}") from ex

    time_zone = overrides.get("time_zone") or "local"
    resolve_time_zone(time_zone)

    return PickerConfig(
        format=fmt,
        start_year=start_year,
        end_year=end_year,
        month_names=month_names,
        weekday_names=weekday_names,
        holidays=frozenset(holidays),
        time_zone=time_zone,
        placeholder=str(overrides.get("placeholder") or ""),
    )


# ------------------------------------------------------------------
# JSON settings (demo app)
# ------------------------------------------------------------------
_STR_KEYS = ("format", "time_zone", "placeholder")
_INT_KEYS = ("start_year", "end_year")
_LIST_KEYS = ("month_names", "weekday_names", "holidays", "holiday_presets")


def load_settings(path: str | None = None) -> dict:
    """Load picker settings from disk, skipping keys with the wrong type.

    The file maps field names to override dicts; the ``"*"`` entry applies
    to every field. A missing or unreadable file yields ``{}``.
    """
    path = path or _SETTINGS_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as ex:
        logger.warning("Ignoring unreadable settings file %s: %s", path, ex)
        return {}
    if not isinstance(stored, dict):
        logger.warning("Ignoring settings file %s: top level is not an object", path)
        return {}

    settings: dict[str, dict] = {}
    for name, entry in stored.items():
        if not isinstance(entry, dict):
            continue
        clean: dict = {}
        for key in _STR_KEYS:
            if isinstance(entry.get(key), str):
                clean[key] = entry[key]
        for key in _INT_KEYS:
            if isinstance(entry.get(key), int) and not isinstance(entry.get(key), bool):
                clean[key] = entry[key]
        for key in _LIST_KEYS:
            if isinstance(entry.get(key), list):
                clean[key] = [v for v in entry[key] if isinstance(v, str)]
        settings[name] = clean
    return settings


def settings_for(settings: dict, name: str) -> dict:
    """Overrides for one field: the ``"*"`` entry updated by the named one."""
    merged = dict(settings.get("*", {}))
    merged.update(settings.get(name, {}))
    return merged
