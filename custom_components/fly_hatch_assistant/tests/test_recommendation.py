import json
import os
from datetime import date

import pytest

from custom_components.fly_hatch_assistant.hatch_calendar import get_default_registry
from custom_components.fly_hatch_assistant.hatch_evaluator import get_active_hatches
from custom_components.fly_hatch_assistant.models import EnvironmentalReadings
from custom_components.fly_hatch_assistant.profile_normalizer import normalize_catalog, normalize_lure
from custom_components.fly_hatch_assistant.recommendation import (
    InvalidRequestError,
    closeness,
    get_suggestions,
    rank_suggestions,
    score,
    score_profile,
)

CATALOG_PATH = os.path.join(os.path.dirname(__file__), "..", "lure_catalog.json")


def _water_only_profile():
    profile, _ = normalize_lure(
        {
            "id": "water_only",
            "name": "Water Only",
            "type": "nymph",
            "best_conditions": {"water_temperature_range": {"min": 40, "max": 65}},
        }
    )
    return profile


def _catalog_profiles():
    with open(CATALOG_PATH, "r", encoding="utf-8") as fp:
        raw = json.load(fp)
    records = [dict(data, id=lure_id) for lure_id, data in raw["lures"].items()]
    return normalize_catalog(records)["profiles"]


def test_closeness_linear_falloff():
    assert closeness(5, 0, 10, 4) == 1.0
    assert closeness(12, 0, 10, 4) == pytest.approx(0.5)
    assert closeness(-1, 0, 10, 4) == pytest.approx(0.75)
    assert closeness(20, 0, 10, 4) == 0.0
    assert closeness(11, 0, 10, 0) == 0.0


def test_water_only_profile_inside_range_scores_one():
    profile = _water_only_profile()
    result = score_profile(profile, EnvironmentalReadings(water_temperature_f=50), [])
    assert result.base_score == 1.0
    assert result.score == 1.0


def test_readings_on_authored_edges_score_inside():
    profile = _water_only_profile()
    for temp_f in (40, 65):
        result = score_profile(profile, EnvironmentalReadings(water_temperature_f=temp_f), [])
        assert result.base_score == 1.0
        assert "Water temperature in ideal range" in result.reasons

    air, _ = normalize_lure(
        {
            "id": "air_only",
            "name": "Air Only",
            "type": "dry",
            "best_conditions": {"air_temperature_range": {"min": 51, "max": 70}},
        }
    )
    for temp_f in (51, 70):
        assert score_profile(air, EnvironmentalReadings(air_temperature_f=temp_f), []).base_score == 1.0


def test_water_only_profile_outside_range_is_between_zero_and_one():
    profile = _water_only_profile()
    value = score(profile, EnvironmentalReadings(water_temperature_f=80), [])
    assert 0.0 < value < 1.0


def test_score_is_monotonic_toward_range():
    profile = _water_only_profile()
    above = [score(profile, {"waterTemperatureF": t}, []) for t in range(100, 59, -2)]
    below = [score(profile, {"waterTemperatureF": t}, []) for t in range(0, 42, 2)]
    assert above == sorted(above)
    assert below == sorted(below)
    assert all(0.0 <= s <= 1.0 for s in above + below)


def test_unprofiled_lure_gets_neutral_score():
    result = score_profile({"id": "mystery", "name": "Mystery Fly"}, EnvironmentalReadings(air_temperature_f=60), [])
    assert result.base_score == 0.5
    assert result.score == 0.5


def test_missing_reading_disables_dimension():
    profile = _water_only_profile()
    result = score_profile(profile, EnvironmentalReadings(air_temperature_f=60), [])
    assert result.base_score == 0.5
    assert result.terms == {}


def test_malformed_range_is_dropped_with_warning():
    profile = {
        "id": "broken",
        "name": "Broken Fly",
        "ideal_conditions": {"water_temp_c": [20.0, 5.0], "air_temp_c": [5.0, 20.0]},
        "weights": {"water_temp_c": 1.0, "air_temp_c": 0.8},
    }
    result = score_profile(profile, EnvironmentalReadings(air_temperature_f=50, water_temperature_f=50), [])
    assert result.base_score == 1.0
    assert len(result.warnings) == 1
    assert "Water temperature" in result.warnings[0]


def test_weather_matches_by_substring():
    profile = {"id": "w", "name": "W", "descriptors": {"weather": ["rainy"]}, "weights": {"weather": 0.7}}
    assert score(profile, EnvironmentalReadings(weather_description="rain"), []) == 1.0
    assert score(profile, EnvironmentalReadings(weather_description="sunny"), []) == 0.0


def test_hatch_bonus_added_and_clamped():
    registry = get_default_registry()
    on = date(2024, 4, 20)
    profile, _ = normalize_lure(
        {
            "id": "bwo",
            "name": "BWO Emerger",
            "type": "emerger",
            "best_conditions": {"water_temperature_range": {"min": 40, "max": 65}},
        }
    )
    result = score_profile(profile, EnvironmentalReadings(water_temperature_f=50), [registry["BWO_SPRING"]], on)
    assert result.hatch_bonus == 0.25
    assert result.score == 1.0
    assert "Peak Blue Winged Olive (Spring) hatch right now" in result.reasons


def test_none_readings_is_an_invalid_request():
    with pytest.raises(InvalidRequestError):
        score(_water_only_profile(), None, [])
    with pytest.raises(InvalidRequestError):
        get_suggestions(None, date(2024, 4, 20), "Provo", {})


def test_empty_catalog_returns_empty_list():
    readings = EnvironmentalReadings(water_temperature_f=50, air_temperature_f=60)
    assert get_suggestions(readings, date(2024, 4, 20), "Provo", {}) == []
    assert get_suggestions(readings, date(2024, 4, 20), "Provo", []) == []


def test_ties_are_ranked_by_name():
    readings = EnvironmentalReadings(water_temperature_f=50)
    breakdowns = [
        score_profile({"id": "b", "name": "Beta"}, readings, []),
        score_profile({"id": "a", "name": "Alpha"}, readings, []),
        score_profile(_water_only_profile(), readings, []),
    ]
    ranked = rank_suggestions(breakdowns)
    assert [s.name for s in ranked] == ["Water Only", "Alpha", "Beta"]


def test_suggestions_for_spring_bwo_on_the_provo():
    profiles = _catalog_profiles()
    readings = {"waterTemperatureF": 50, "airTemperatureF": 55, "weatherDescription": "cloudy", "timeOfDay": "afternoon"}
    suggestions = get_suggestions(readings, date(2024, 4, 20), "Provo River", profiles, limit=5)
    assert len(suggestions) == 5
    scores = [s.score for s in suggestions]
    assert scores == sorted(scores, reverse=True)

    bwo = next(s for s in suggestions if s.name == "BWO Emerger")
    assert bwo.hatch_bonus == 0.25
    assert bwo.score == 1.0


def test_unknown_location_gets_no_river_specific_bonus():
    profiles = _catalog_profiles()
    readings = EnvironmentalReadings(water_temperature_f=50)
    suggestions = {s.name: s for s in get_suggestions(readings, date(2024, 4, 20), "Nowhere Creek", profiles)}
    assert suggestions["BWO Emerger"].hatch_bonus == 0.0
    # year-round midges apply everywhere
    assert suggestions["Zebra Midge"].hatch_bonus == 0.25
    assert len(suggestions) == len(profiles)


def test_precomputed_active_hatches_are_used():
    profiles = _catalog_profiles()
    readings = EnvironmentalReadings(water_temperature_f=50)
    on = date(2024, 4, 20)
    computed = get_suggestions(readings, on, "Provo River", profiles)
    active = get_active_hatches(on, 50, "Provo River")
    assert get_suggestions(readings, on, "Provo River", profiles, active_hatches=active) == computed

    no_hatches = {s.name: s for s in get_suggestions(readings, on, "Provo River", profiles, active_hatches=[])}
    assert all(s.hatch_bonus == 0.0 for s in no_hatches.values())
