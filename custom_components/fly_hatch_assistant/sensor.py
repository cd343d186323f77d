"""
Fly Hatch Assistant sensors.

Both entities read the canonical payload produced by FHACoordinator:
 - coordinator.data is a dict with keys:
    - "suggestions": ranked list of Suggestion.as_dict() entries
    - "active_hatches": describe_hatch() entries, peak first
    - "hatch_instances": ActiveHatchInstance.as_dict() entries
    - "local_hatch_info": region / river system / seasonal pattern summary
    - "readings": the resolved EnvironmentalReadings
    - "generation", "date"
"""
from typing import Optional, Dict, Any
import logging

from homeassistant.helpers.update_coordinator import CoordinatorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN, CONF_NAME, CONF_LOCATION

_LOGGER = logging.getLogger(__name__)


class FHABaseSensor(CoordinatorEntity):
    """Shared naming and availability for Fly Hatch Assistant sensors."""

    _suffix = ""

    def __init__(self, coordinator, name: str):
        if not name:
            raise RuntimeError("Sensor name must be provided")

        super().__init__(coordinator)

        prefix = DOMAIN
        if not name.startswith(prefix):
            name = f"{prefix}_{name}"
        name = f"{name}_{self._suffix}"

        self._attr_name = name
        self._attr_unique_id = f"{prefix}_{getattr(coordinator, 'entry_id', 'noentry')}_{self._suffix}"

    @property
    def available(self) -> bool:
        return bool(self.coordinator.last_update_success and self.coordinator.data)

    def _data(self) -> Dict[str, Any]:
        data = self.coordinator.data
        if not data:
            raise RuntimeError("Coordinator data missing")
        return data


class TopSuggestionSensor(FHABaseSensor):
    """State is the best-scoring lure name; attributes carry the full ranking."""

    _suffix = "top_suggestion"
    _attr_icon = "mdi:hook"

    @property
    def state(self) -> Optional[str]:
        suggestions = self._data().get("suggestions") or []
        if not suggestions:
            return None
        return suggestions[0]["name"]

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        data = self._data()
        suggestions = data.get("suggestions") or []
        top = suggestions[0] if suggestions else {}
        return {
            "score": top.get("score"),
            "reasons": top.get("reasons", []),
            "suggestions": suggestions,
            "readings": data.get("readings"),
            "location": getattr(self.coordinator, "location", None),
            "profile_generation": data.get("generation"),
            "date": data.get("date"),
        }


class ActiveHatchesSensor(FHABaseSensor):
    """State is the number of active hatches; attributes list them."""

    _suffix = "active_hatches"
    _attr_icon = "mdi:butterfly"

    @property
    def state(self) -> int:
        return len(self._data().get("active_hatches") or [])

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        data = self._data()
        hatches = data.get("active_hatches") or []
        return {
            "hatches": hatches,
            "peak_hatches": [h["name"] for h in hatches if h.get("peak")],
            "hatch_instances": data.get("hatch_instances") or [],
            "local_hatch_info": data.get("local_hatch_info"),
            "date": data.get("date"),
        }


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry, async_add_entities):
    coordinator = hass.data[DOMAIN].get(entry.entry_id) if hass.data.get(DOMAIN) else None
    if coordinator is None:
        raise RuntimeError("Coordinator not found in hass.data for this config entry")

    sensor_name = entry.data.get(CONF_NAME) or entry.data.get(CONF_LOCATION)
    if not sensor_name:
        raise RuntimeError("Missing required name in config entry data")

    async_add_entities(
        [
            TopSuggestionSensor(coordinator, name=sensor_name),
            ActiveHatchesSensor(coordinator, name=sensor_name),
        ],
        update_before_add=True,
    )
