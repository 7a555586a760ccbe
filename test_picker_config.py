import json
from datetime import date, datetime, timedelta, timezone

import pytest

from picker_config import (
    DEFAULT_MONTH_NAMES,
    DEFAULT_WEEKDAY_NAMES,
    ConfigError,
    build_config,
    load_settings,
    now_in,
    resolve_time_zone,
    settings_for,
)


def test_defaults():
    config = build_config(today=date(2026, 5, 1))
    assert config.format == "Y-m-d"
    assert (config.start_year, config.end_year) == (2016, 2036)
    assert config.month_names == DEFAULT_MONTH_NAMES
    assert config.weekday_names == DEFAULT_WEEKDAY_NAMES
    assert config.holidays == frozenset()
    assert config.time_zone == "local"
    assert config.placeholder == ""


def test_empty_values_fall_back_to_defaults():
    config = build_config({"format": "", "start_year": 0, "month_names": []},
                          today=date(2026, 5, 1))
    assert config.format == "Y-m-d"
    assert config.start_year == 2016
    assert config.month_names == DEFAULT_MONTH_NAMES


def test_overrides():
    config = build_config({
        "format": "d.m.Y H:i",
        "start_year": 1990,
        "end_year": 2000,
        "weekday_names": ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"],
        "time_zone": "UTC",
        "placeholder": "tt.mm.jjjj",
    })
    assert config.format == "d.m.Y H:i"
    assert (config.start_year, config.end_year) == (1990, 2000)
    assert config.weekday_names[1] == "Di"
    assert config.time_zone == "UTC"
    assert config.placeholder == "tt.mm.jjjj"


@pytest.mark.parametrize("overrides", [
    {"format": "Y/m"},
    {"start_year": 2030, "end_year": 2020},
    {"month_names": ["Jan"]},
    {"weekday_names": ["Mo", "Tu"]},
    {"time_zone": "Not/AZone"},
    {"time_zone": "+25:00"},
    {"holidays": ["2024-02-30"]},
    {"holidays": [42]},
    {"holiday_presets": ["xx_unknown"]},
])
def test_invalid_config_raises(overrides):
    with pytest.raises(ConfigError):
        build_config(overrides)


def test_holidays_accept_dates_and_strings():
    config = build_config({"holidays": ["1970-12-25", date(2024, 5, 1), datetime(2024, 8, 1, 9)]})
    assert config.holidays == frozenset({
        datetime(1970, 12, 25), datetime(2024, 5, 1), datetime(2024, 8, 1, 9),
    })


def test_holiday_presets_expand_over_year_range():
    config = build_config({"holiday_presets": ["CH"], "start_year": 2024, "end_year": 2025})
    assert datetime(1970, 8, 1) in config.holidays
    assert datetime(2024, 3, 29) in config.holidays  # Karfreitag
    assert datetime(2025, 4, 18) in config.holidays


def test_resolve_time_zone():
    assert resolve_time_zone("UTC") is timezone.utc
    assert resolve_time_zone("+02:00") == timezone(timedelta(hours=2))
    assert resolve_time_zone("-0530") == timezone(-timedelta(hours=5, minutes=30))
    assert resolve_time_zone(None) is not None


def test_now_in_is_naive():
    now = now_in("UTC")
    assert now.tzinfo is None
    assert abs(now - datetime.now(timezone.utc).replace(tzinfo=None)) < timedelta(minutes=1)


def test_load_settings_missing_file(tmp_path):
    assert load_settings(str(tmp_path / "nope.json")) == {}


def test_load_settings_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(str(path)) == {}
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_settings(str(path)) == {}


def test_load_settings_drops_wrong_types(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "*": {"format": "d.m.Y", "start_year": "1990", "time_zone": "UTC"},
        "birthday": {"start_year": 1900, "end_year": True, "holidays": ["1970-01-01", 5]},
        "broken": "nope",
    }), encoding="utf-8")
    settings = load_settings(str(path))
    assert settings["*"] == {"format": "d.m.Y", "time_zone": "UTC"}
    assert settings["birthday"] == {"start_year": 1900, "holidays": ["1970-01-01"]}
    assert "broken" not in settings


def test_settings_for_merges_wildcard():
    settings = {"*": {"format": "d.m.Y", "time_zone": "UTC"}, "birthday": {"format": "Y-m-d"}}
    assert settings_for(settings, "birthday") == {"format": "Y-m-d", "time_zone": "UTC"}
    assert settings_for(settings, "other") == {"format": "d.m.Y", "time_zone": "UTC"}
    assert settings_for({}, "other") == {}
