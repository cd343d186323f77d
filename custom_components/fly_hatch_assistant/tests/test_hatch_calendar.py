import json

import pytest

from custom_components.fly_hatch_assistant.hatch_calendar import (
    RegistryError,
    get_default_registry,
    load_registry,
    names_match,
)


def _write(tmp_path, hatches):
    path = tmp_path / "calendar.json"
    path.write_text(json.dumps({"version": "test", "hatches": hatches}), encoding="utf-8")
    return str(path)


def _pattern(**overrides):
    base = {
        "name": "Test Mayfly",
        "emergence": {"start_month": 3, "start_day": 1, "peak_month": 4, "peak_day": 1, "end_month": 5, "end_day": 1},
        "water_temp_range_f": [45, 60],
        "optimal_time_of_day": ["midday"],
        "rivers": ["All"],
        "fly_patterns": ["Test Fly"],
        "size": "#16",
        "importance": "minor",
        "stages": ["dun"],
    }
    base.update(overrides)
    return base


def test_default_registry_is_loaded_once_and_ordered():
    registry = get_default_registry()
    assert registry is get_default_registry()
    assert len(registry) == 13
    assert list(registry)[0] == "BWO_SPRING"
    assert registry.get("WINTER_MIDGE").name == "Winter Midge"
    assert registry.get("NOPE") is None
    assert registry.version == "2024.1"


def test_registry_is_read_only():
    registry = get_default_registry()
    with pytest.raises(TypeError):
        registry["NEW"] = registry["PMD"]


def test_keyword_table_and_lure_lookup():
    registry = get_default_registry()
    assert registry.keyword_index["zebra midge"] == ("BWO_SPRING", "MIDGE_YEAR_ROUND", "WINTER_MIDGE")
    assert registry.hatch_ids_for_lure("BWO Emerger") == ("BWO_SPRING", "BWO_FALL")
    assert registry.hatch_ids_for_lure("Woolly Bugger") == ()
    assert registry.hatch_ids_for_lure("") == ()
    # memoised lookups return the same tuple
    assert registry.hatch_ids_for_lure("Zebra Midge") is registry.hatch_ids_for_lure("zebra midge ")


def test_names_match_both_directions():
    assert names_match("BWO Emerger", "bwo")
    assert names_match("RS2", "RS2 Emerger")
    assert not names_match("Woolly Bugger", "BWO")
    assert not names_match("", "BWO")


def test_load_registry_rejects_bad_importance(tmp_path):
    path = _write(tmp_path, {"X": _pattern(importance="legendary")})
    with pytest.raises(RegistryError):
        load_registry(path)


def test_load_registry_rejects_inverted_temperature(tmp_path):
    path = _write(tmp_path, {"X": _pattern(water_temp_range_f=[60, 45])})
    with pytest.raises(RegistryError):
        load_registry(path)


def test_load_registry_rejects_bad_day(tmp_path):
    em = {"start_month": 2, "start_day": 30, "peak_month": 3, "peak_day": 1, "end_month": 4, "end_day": 1}
    path = _write(tmp_path, {"X": _pattern(emergence=em)})
    with pytest.raises(RegistryError):
        load_registry(path)


def test_load_registry_rejects_missing_keys_and_file(tmp_path):
    data = _pattern()
    del data["stages"]
    with pytest.raises(RegistryError):
        load_registry(_write(tmp_path, {"X": data}))
    with pytest.raises(RegistryError):
        load_registry(str(tmp_path / "missing.json"))


def test_load_registry_accepts_wrapping_window(tmp_path):
    em = {"start_month": 11, "start_day": 1, "peak_month": 1, "peak_day": 1, "end_month": 2, "end_day": 28}
    registry = load_registry(_write(tmp_path, {"X": _pattern(emergence=em)}))
    assert registry["X"].emergence.start_month == 11
