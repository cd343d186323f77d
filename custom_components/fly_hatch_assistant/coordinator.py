# Coordinator: resolves live readings from Home Assistant entities, runs the hatch/recommendation engine off the loop

from datetime import date, datetime, timedelta
import async_timeout
import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util

from .const import (
    CONF_AIR_TEMP_ENTITY,
    CONF_STREAM_FLOW_ENTITY,
    CONF_WATER_TEMP_ENTITY,
    CONF_WEATHER_ENTITY,
    CONF_WIND_SPEED_ENTITY,
    DEFAULT_MAX_SUGGESTIONS,
    DOMAIN,
    ENGINE_TIMEOUT,
    HA_CONDITION_TO_WEATHER,
    STORE_KEY,
    STORE_VERSION,
)
from .hatch_calendar import HatchRegistry, get_default_registry
from .hatch_evaluator import (
    describe_hatch,
    get_active_hatches,
    get_comprehensive_hatch_data,
    season_for_date,
    time_of_day_for_hour,
)
from .models import EnvironmentalReadings
from .profile_normalizer import normalize_catalog
from .recommendation import get_suggestions
from . import unit_helpers

_LOGGER = logging.getLogger(__name__)

_UNAVAILABLE_STATES = ("unknown", "unavailable", "none", "")


class FHACoordinator(DataUpdateCoordinator):
    def __init__(
        self,
        hass,
        entry_id: str,
        location: str,
        lat: Optional[float],
        lon: Optional[float],
        sources: Mapping[str, Optional[str]],
        update_interval: int,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
        store_enabled: bool = False,
        registry: Optional[HatchRegistry] = None,
        config_entry=None,
    ):
        """
        - sources maps the CONF_*_ENTITY keys to entity ids (any may be None).
        - registry defaults to the packaged hatch calendar.
        """
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=update_interval),
        )
        self.entry_id = entry_id
        self.location = location
        self.lat = lat
        self.lon = lon
        self.sources = dict(sources)
        self.max_suggestions = int(max_suggestions)
        self.registry = registry if registry is not None else get_default_registry()
        self._store = Store(hass, STORE_VERSION, f"{STORE_KEY}_{entry_id}") if store_enabled else None
        # {"generation", "profiles", "warnings"}; replaced as a whole, never mutated
        self._generation: Optional[Dict[str, Any]] = None

    @property
    def generation(self) -> Optional[str]:
        return self._generation["generation"] if self._generation else None

    @property
    def profiles(self) -> Dict[str, Any]:
        return self._generation["profiles"] if self._generation else {}

    async def async_load_from_store(self) -> bool:
        """
        Restore the last persisted profile generation.

        Returns False when nothing has been persisted yet. Raises on an invalid payload.
        """
        if not self._store:
            raise RuntimeError("Persistence store not configured for this coordinator (cannot load)")

        stored = await self._store.async_load()
        if not stored:
            return False

        if not isinstance(stored, dict) or not isinstance(stored.get("profiles"), dict) or not stored.get("generation"):
            raise RuntimeError("Persisted profile generation invalid")

        self._generation = {
            "generation": stored["generation"],
            "profiles": stored["profiles"],
            "warnings": list(stored.get("warnings") or []),
        }
        _LOGGER.debug("Restored profile generation %s for %s", stored["generation"], self.entry_id)
        return True

    async def async_update_profiles(self, records: List[Mapping[str, Any]]) -> str:
        """Normalize authored lure records into a new generation and swap it in."""
        generation = await self.hass.async_add_executor_job(normalize_catalog, records, self.registry)
        previous = self.generation
        if previous is not None and generation["generation"] == previous:
            # same content: keep the current (possibly restored) generation, no save
            _LOGGER.debug("Profile generation %s unchanged for %s", previous, self.entry_id)
            return previous
        self._generation = generation
        if generation["warnings"]:
            _LOGGER.debug("Profile generation %s has %d warnings", generation["generation"], len(generation["warnings"]))

        if self._store:
            await self._store.async_save(
                {
                    "saved_at": time.time(),
                    "generation": generation["generation"],
                    "profiles": generation["profiles"],
                    "warnings": generation["warnings"],
                }
            )
        _LOGGER.debug(
            "Profile generation %s active for %s (%d lures)",
            generation["generation"],
            self.entry_id,
            len(generation["profiles"]),
        )
        return generation["generation"]

    def _state(self, key: str):
        entity_id = self.sources.get(key)
        if not entity_id:
            return None
        state = self.hass.states.get(entity_id)
        if state is None:
            _LOGGER.debug("Configured entity %s for %s does not exist", entity_id, key)
            return None
        if str(state.state).lower() in _UNAVAILABLE_STATES:
            return None
        return state

    def _sensor_value(self, key: str, converter) -> Optional[float]:
        state = self._state(key)
        if state is None:
            return None
        value = converter(state.state, state.attributes.get("unit_of_measurement"))
        if value is None:
            _LOGGER.debug("Non-numeric state %r for %s; dimension skipped", state.state, key)
        return value

    def resolve_readings(self, now: datetime) -> EnvironmentalReadings:
        """Build the live readings from configured entities and the local clock."""
        air_f = self._sensor_value(CONF_AIR_TEMP_ENTITY, unit_helpers.temperature_to_f)
        water_f = self._sensor_value(CONF_WATER_TEMP_ENTITY, unit_helpers.temperature_to_f)
        flow_cfs = self._sensor_value(CONF_STREAM_FLOW_ENTITY, unit_helpers.flow_to_cfs)
        wind_mph = self._sensor_value(CONF_WIND_SPEED_ENTITY, unit_helpers.wind_to_mph)

        weather_desc = None
        weather = self._state(CONF_WEATHER_ENTITY)
        if weather is not None:
            condition = str(weather.state).lower()
            weather_desc = HA_CONDITION_TO_WEATHER.get(condition, condition)
            attrs = weather.attributes
            # weather entity fills in sensors that are not configured or unavailable
            if air_f is None:
                air_f = unit_helpers.temperature_to_f(attrs.get("temperature"), attrs.get("temperature_unit"))
            if wind_mph is None:
                wind_mph = unit_helpers.wind_to_mph(attrs.get("wind_speed"), attrs.get("wind_speed_unit"))

        return EnvironmentalReadings(
            air_temperature_f=air_f,
            water_temperature_f=water_f,
            stream_flow_cfs=flow_cfs,
            wind_speed_mph=wind_mph,
            weather_description=weather_desc,
            time_of_day=time_of_day_for_hour(now.hour),
            season=season_for_date(now.date()),
            latitude=self.lat,
            longitude=self.lon,
        )

    def _run_engine(self, readings: EnvironmentalReadings, on_date: date, generation: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        profiles = generation["profiles"] if generation else {}
        active = get_active_hatches(on_date, readings.water_temperature_f, self.location, self.registry)
        suggestions = get_suggestions(
            readings, on_date, self.location, profiles, self.registry, limit=self.max_suggestions, active_hatches=active
        )
        hatch_data = get_comprehensive_hatch_data(
            self.location,
            self.lat,
            self.lon,
            on_date,
            readings.water_temperature_f,
            readings.time_of_day,
            self.registry,
        )
        return {
            "generation": generation["generation"] if generation else None,
            "date": on_date.isoformat(),
            "readings": readings.as_dict(),
            "active_hatches": [describe_hatch(h, on_date) for h in active],
            "hatch_instances": [i.as_dict() for i in hatch_data["active_hatches"]],
            "local_hatch_info": hatch_data["local_hatch_info"],
            "suggestions": [s.as_dict() for s in suggestions],
        }

    async def _async_update_data(self):
        """Resolve readings and rank lures for the current local date. Errors propagate."""
        now = dt_util.now()
        readings = self.resolve_readings(now)
        # one generation per pass even if a new one is swapped in meanwhile
        generation = self._generation
        async with async_timeout.timeout(ENGINE_TIMEOUT):
            data = await self.hass.async_add_executor_job(self._run_engine, readings, now.date(), generation)
        _LOGGER.debug(
            "Update for %s: %d active hatches, %d suggestions",
            self.entry_id,
            len(data["active_hatches"]),
            len(data["suggestions"]),
        )
        return data
