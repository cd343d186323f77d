from datetime import datetime

import pytest

from custom_components.fly_hatch_assistant.const import (
    CONF_AIR_TEMP_ENTITY,
    CONF_STREAM_FLOW_ENTITY,
    CONF_WATER_TEMP_ENTITY,
    CONF_WEATHER_ENTITY,
    CONF_WIND_SPEED_ENTITY,
)
from custom_components.fly_hatch_assistant.coordinator import FHACoordinator

SOURCES = {
    CONF_AIR_TEMP_ENTITY: "sensor.air_temp",
    CONF_WATER_TEMP_ENTITY: "sensor.water_temp",
    CONF_STREAM_FLOW_ENTITY: "sensor.provo_flow",
    CONF_WIND_SPEED_ENTITY: None,
    CONF_WEATHER_ENTITY: "weather.home",
}

RECORDS = [
    {
        "id": "bwo_emerger",
        "name": "BWO Emerger",
        "type": "emerger",
        "best_conditions": {"water_temperature_range": {"min": 45, "max": 58}, "weather": ["cloudy", "rain"]},
    },
    {
        "id": "woolly_bugger",
        "name": "Woolly Bugger",
        "type": "streamer",
        "best_conditions": {"water_flow": ["fast"], "water_temperature_range": {"min": 40, "max": 68}},
    },
]


def _coordinator(hass, **kwargs):
    return FHACoordinator(
        hass,
        "t1",
        location="Provo River",
        lat=40.3,
        lon=-111.6,
        sources=SOURCES,
        update_interval=60,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_readings_resolved_from_entities(hass):
    hass.states.async_set("sensor.air_temp", "unavailable")
    hass.states.async_set("sensor.water_temp", "10", {"unit_of_measurement": "°C"})
    hass.states.async_set("sensor.provo_flow", "12.5", {"unit_of_measurement": "m³/s"})
    hass.states.async_set(
        "weather.home",
        "pouring",
        {"temperature": 55, "temperature_unit": "°F", "wind_speed": 16.09344, "wind_speed_unit": "km/h"},
    )

    coord = _coordinator(hass)
    readings = coord.resolve_readings(datetime(2024, 4, 20, 15, 0))

    assert readings.water_temperature_f == pytest.approx(50.0)
    assert readings.stream_flow_cfs == pytest.approx(441.43, abs=0.01)
    # air sensor unavailable: weather entity supplies it
    assert readings.air_temperature_f == 55
    assert readings.wind_speed_mph == pytest.approx(10.0)
    assert readings.weather_description == "rainy"
    assert readings.time_of_day == "afternoon"
    assert readings.season == "spring"


@pytest.mark.asyncio
async def test_non_numeric_state_disables_dimension(hass):
    hass.states.async_set("sensor.water_temp", "warm", {"unit_of_measurement": "°F"})
    coord = _coordinator(hass)
    readings = coord.resolve_readings(datetime(2024, 4, 20, 9, 0))
    assert readings.water_temperature_f is None
    assert readings.weather_description is None
    assert readings.time_of_day == "morning"


@pytest.mark.asyncio
async def test_update_ranks_profiles(hass):
    hass.states.async_set("sensor.water_temp", "50", {"unit_of_measurement": "°F"})
    hass.states.async_set("weather.home", "cloudy", {})

    coord = _coordinator(hass)
    generation = await coord.async_update_profiles(RECORDS)
    assert coord.generation == generation
    assert set(coord.profiles) == {"bwo_emerger", "woolly_bugger"}

    data = await coord._async_update_data()
    assert data["generation"] == generation
    assert [s["name"] for s in data["suggestions"]][0] == "BWO Emerger"
    assert data["readings"]["water_temperature_f"] == 50.0
    assert "active_hatches" in data and "hatch_instances" in data
    assert data["local_hatch_info"]["region"] == "Central Utah"


@pytest.mark.asyncio
async def test_update_without_profiles_gives_no_suggestions(hass):
    hass.states.async_set("sensor.water_temp", "50", {"unit_of_measurement": "°F"})
    coord = _coordinator(hass)
    data = await coord._async_update_data()
    assert data["suggestions"] == []
    assert data["generation"] is None


@pytest.mark.asyncio
async def test_generation_persisted_and_restored(hass, hass_storage):
    coord = _coordinator(hass, store_enabled=True)
    generation = await coord.async_update_profiles(RECORDS)

    restored = _coordinator(hass, store_enabled=True)
    assert await restored.async_load_from_store() is True
    assert restored.generation == generation
    assert restored.profiles == coord.profiles


@pytest.mark.asyncio
async def test_load_from_store_requires_store(hass):
    coord = _coordinator(hass)
    with pytest.raises(RuntimeError):
        await coord.async_load_from_store()


@pytest.mark.asyncio
async def test_unchanged_catalog_keeps_restored_generation(hass, hass_storage):
    coord = _coordinator(hass, store_enabled=True)
    generation = await coord.async_update_profiles(RECORDS)
    saved = [v["data"]["saved_at"] for v in hass_storage.values() if "saved_at" in v.get("data", {})]

    restored = _coordinator(hass, store_enabled=True)
    assert await restored.async_load_from_store() is True
    before = restored.profiles
    assert await restored.async_update_profiles(RECORDS) == generation
    assert restored.profiles is before
    # no re-save for the same content
    assert [v["data"]["saved_at"] for v in hass_storage.values() if "saved_at" in v.get("data", {})] == saved

    changed = await restored.async_update_profiles(RECORDS[:1])
    assert changed != generation
    assert set(restored.profiles) == {"bwo_emerger"}


@pytest.mark.asyncio
async def test_hatch_instances_follow_time_of_day(hass):
    hass.states.async_set("sensor.water_temp", "50", {"unit_of_measurement": "°F"})
    coord = _coordinator(hass)
    await coord.async_update_profiles(RECORDS)
    on = datetime(2024, 4, 20, 15, 0)

    afternoon = coord._run_engine(coord.resolve_readings(on), on.date(), coord._generation)
    assert afternoon["hatch_instances"]
    assert all("afternoon" in i["time_period"] for i in afternoon["hatch_instances"])
    assert "Caddisfly" not in {i["insect"] for i in afternoon["hatch_instances"]}
    # the whole-day list and the bonus still see every active hatch
    assert "CADDIS" in {h["id"] for h in afternoon["active_hatches"]}

    evening = coord._run_engine(coord.resolve_readings(on.replace(hour=18)), on.date(), coord._generation)
    assert {i["insect"] for i in evening["hatch_instances"]} == {"Caddisfly"}
