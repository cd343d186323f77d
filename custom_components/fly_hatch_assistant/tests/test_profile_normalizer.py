import json
import os

import pytest

from custom_components.fly_hatch_assistant.profile_normalizer import (
    dumps_profile,
    normalize_catalog,
    normalize_lure,
)

CATALOG_PATH = os.path.join(os.path.dirname(__file__), "..", "lure_catalog.json")


def _authored(**best):
    return {
        "id": "test_fly",
        "name": "Test Fly",
        "type": "dry",
        "best_conditions": best,
        "hatch_matching": {"insects": ["Mayfly"], "stages": ["Dun"], "sizes": ["#14-18"]},
    }


def _catalog_records():
    with open(CATALOG_PATH, "r", encoding="utf-8") as fp:
        raw = json.load(fp)
    return [dict(data, id=lure_id) for lure_id, data in raw["lures"].items()]


def test_temperatures_convert_to_celsius_one_decimal():
    profile, warnings = normalize_lure(
        _authored(air_temperature_range={"min": 50, "max": 80}, water_temperature_range={"min": 40, "max": 65})
    )
    assert warnings == []
    assert profile["ideal_conditions"]["air_temp_c"] == [10.0, 26.7]
    assert profile["ideal_conditions"]["water_temp_c"] == [4.4, 18.3]


def test_flow_and_wind_bands_merge_as_union():
    profile, _ = normalize_lure(_authored(water_flow=["slow", "fast"], wind_conditions=["calm", "Light Breeze"]))
    assert profile["ideal_conditions"]["stream_flow_cfs"] == [60.0, 800.0]
    assert profile["ideal_conditions"]["wind_speed_mph"] == [0.0, 8.0]


def test_missing_dimensions_are_omitted_not_zeroed():
    profile, _ = normalize_lure(_authored(water_temperature_range={"min": 40, "max": 65}, water_flow=["glassy"]))
    assert list(profile["ideal_conditions"]) == ["water_temp_c"]
    assert set(profile["weights"]) == {"water_temp_c"}
    assert profile["descriptors"] == {}


def test_weights_follow_fly_type():
    best = {
        "air_temperature_range": {"min": 50, "max": 80},
        "water_temperature_range": {"min": 40, "max": 65},
        "water_flow": ["moderate"],
        "wind_conditions": ["calm"],
        "weather": ["cloudy"],
        "time_of_day": ["dusk"],
    }
    dry, _ = normalize_lure(_authored(**best))
    streamer, _ = normalize_lure(dict(_authored(**best), type="Streamer"))
    assert dry["weights"] == {
        "air_temp_c": 1.1,
        "water_temp_c": 1.0,
        "stream_flow_cfs": 1.0,
        "wind_speed_mph": 0.4,
        "weather": 0.7,
        "time_of_day": 0.5,
    }
    assert streamer["weights"]["air_temp_c"] == 0.8
    assert streamer["weights"]["water_temp_c"] == 1.3
    assert streamer["weights"]["stream_flow_cfs"] == 1.4


def test_descriptors_are_canonical():
    profile, _ = normalize_lure(
        _authored(weather=["Rain", "partly cloudy", "rainy"], time_of_year=["June", "July", "Autumn"], water_clarity=["Slightly Murky"])
    )
    assert profile["descriptors"]["weather"] == ["partly_cloudy", "rainy"]
    assert profile["descriptors"]["season"] == ["fall", "summer"]
    assert profile["descriptors"]["water_clarity"] == ["slightly_murky"]


def test_inverted_range_dropped_with_warning():
    profile, warnings = normalize_lure(_authored(water_temperature_range={"min": 65, "max": 40}))
    assert "water_temp_c" not in profile["ideal_conditions"]
    assert len(warnings) == 1
    assert "water_temp_c" in warnings[0]


def test_entomology_summary():
    profile, _ = normalize_lure(dict(_authored(), name="Zebra Midge", type="nymph",
                                     hatch_matching={"insects": ["midge"], "stages": ["nymph"], "sizes": ["#18-24"]}))
    ento = profile["entomology"]
    assert ento["order"] == "Diptera"
    assert ento["size_range"] == [18, 24]
    assert ento["behavior"].startswith("Sub-surface")
    assert ento["hatch_ids"] == ["BWO_SPRING", "MIDGE_YEAR_ROUND", "WINTER_MIDGE"]


def test_normalizing_normalized_output_is_byte_identical():
    for record in _catalog_records():
        first, _ = normalize_lure(record)
        second, warnings = normalize_lure(json.loads(dumps_profile(first)))
        assert warnings == []
        assert dumps_profile(second) == dumps_profile(first), record["id"]


def test_catalog_generation_is_deterministic():
    records = _catalog_records()
    first = normalize_catalog(records)
    second = normalize_catalog(list(records))
    assert first["generation"] == second["generation"]
    assert len(first["profiles"]) == len(records)

    again = normalize_catalog(first["profiles"].values())
    assert again["generation"] == first["generation"]


def test_catalog_skips_records_without_id():
    result = normalize_catalog([{"name": "Nameless"}, {"id": "a", "name": "A"}, {"id": "a", "name": "A again"}])
    assert list(result["profiles"]) == ["a"]
    assert result["profiles"]["a"]["name"] == "A"
    assert len(result["warnings"]) == 2


@pytest.mark.parametrize("bad", [{"min": 40}, {"min": "cold", "max": 60}, [40, 60]])
def test_malformed_temperature_specs_are_omitted(bad):
    profile, warnings = normalize_lure(_authored(water_temperature_range=bad))
    assert profile["ideal_conditions"] == {}
    assert warnings
