"""Config flow for Fly Hatch Assistant"""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector
import homeassistant.helpers.config_validation as cv

from .const import (
    DOMAIN,
    CONF_NAME,
    CONF_LOCATION,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_AIR_TEMP_ENTITY,
    CONF_WATER_TEMP_ENTITY,
    CONF_STREAM_FLOW_ENTITY,
    CONF_WIND_SPEED_ENTITY,
    CONF_WEATHER_ENTITY,
    CONF_UPDATE_INTERVAL,
    CONF_MAX_SUGGESTIONS,
    CONF_PERSIST_PROFILES,
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_NAME,
    DEFAULT_UPDATE_INTERVAL,
    READING_SOURCE_KEYS,
)

_LOGGER = logging.getLogger(__name__)


def _sensor_selector(device_class: str | None = None) -> selector.EntitySelector:
    if device_class:
        return selector.EntitySelector(selector.EntitySelectorConfig(domain="sensor", device_class=device_class))
    return selector.EntitySelector(selector.EntitySelectorConfig(domain="sensor"))


def _tuning_schema(defaults: dict[str, Any]) -> dict:
    return {
        vol.Required(
            CONF_UPDATE_INTERVAL, default=defaults.get(CONF_UPDATE_INTERVAL, DEFAULT_UPDATE_INTERVAL)
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(min=60, max=3600, step=60, unit_of_measurement="s", mode="box")
        ),
        vol.Required(
            CONF_MAX_SUGGESTIONS, default=defaults.get(CONF_MAX_SUGGESTIONS, DEFAULT_MAX_SUGGESTIONS)
        ): selector.NumberSelector(selector.NumberSelectorConfig(min=1, max=25, step=1, mode="slider")),
    }


class FlyHatchConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Fly Hatch Assistant."""

    VERSION = 1

    def __init__(self) -> None:
        self.fly_config: dict[str, Any] = {}

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Name the entry and describe the water being fished."""
        errors: dict[str, str] = {}
        if user_input is not None:
            try:
                lat = float(user_input[CONF_LATITUDE])
                lon = float(user_input[CONF_LONGITUDE])
                if not (-90 <= lat <= 90 and -180 <= lon <= 180):
                    errors["base"] = "invalid_coordinates"
            except (ValueError, KeyError):
                errors["base"] = "invalid_coordinates"

            if not errors and not str(user_input.get(CONF_LOCATION, "")).strip():
                errors[CONF_LOCATION] = "location_required"

            if not errors:
                submitted_title = str(user_input.get(CONF_NAME, "")).strip()
                for e in self.hass.config_entries.async_entries(DOMAIN):
                    if e.title == submitted_title:
                        _LOGGER.debug("Attempt to create entry with duplicate title '%s' rejected", submitted_title)
                        errors["base"] = "title_exists"
                        break

            if not errors:
                self.fly_config.update(user_input)
                self.fly_config[CONF_NAME] = str(user_input[CONF_NAME]).strip()
                self.fly_config[CONF_LOCATION] = str(user_input[CONF_LOCATION]).strip()
                return await self.async_step_sources()

        defaults = user_input or {}
        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME, default=defaults.get(CONF_NAME, DEFAULT_NAME)): str,
                    vol.Required(CONF_LOCATION, default=defaults.get(CONF_LOCATION, "")): str,
                    vol.Required(
                        CONF_LATITUDE, default=defaults.get(CONF_LATITUDE, self.hass.config.latitude)
                    ): cv.latitude,
                    vol.Required(
                        CONF_LONGITUDE, default=defaults.get(CONF_LONGITUDE, self.hass.config.longitude)
                    ): cv.longitude,
                }
            ),
            errors=errors,
        )

    async def async_step_sources(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        """Pick the entities that supply live readings. At least one is required."""
        errors: dict[str, str] = {}
        if user_input is not None:
            if not any(user_input.get(k) for k in READING_SOURCE_KEYS):
                errors["base"] = "no_sources"
            else:
                final_config = dict(self.fly_config)
                for key in READING_SOURCE_KEYS:
                    final_config[key] = user_input.get(key) or None
                final_config[CONF_UPDATE_INTERVAL] = int(user_input.get(CONF_UPDATE_INTERVAL, DEFAULT_UPDATE_INTERVAL))
                final_config[CONF_MAX_SUGGESTIONS] = int(user_input.get(CONF_MAX_SUGGESTIONS, DEFAULT_MAX_SUGGESTIONS))
                final_config[CONF_PERSIST_PROFILES] = bool(user_input.get(CONF_PERSIST_PROFILES, True))
                _LOGGER.debug("Creating entry %s with sources %s", final_config[CONF_NAME], [final_config[k] for k in READING_SOURCE_KEYS])
                return self.async_create_entry(title=final_config[CONF_NAME], data=final_config)

        schema = {
            vol.Optional(CONF_WATER_TEMP_ENTITY): _sensor_selector("temperature"),
            vol.Optional(CONF_AIR_TEMP_ENTITY): _sensor_selector("temperature"),
            vol.Optional(CONF_STREAM_FLOW_ENTITY): _sensor_selector(),
            vol.Optional(CONF_WIND_SPEED_ENTITY): _sensor_selector("wind_speed"),
            vol.Optional(CONF_WEATHER_ENTITY): selector.EntitySelector(selector.EntitySelectorConfig(domain="weather")),
        }
        schema.update(_tuning_schema({}))
        schema[vol.Required(CONF_PERSIST_PROFILES, default=True)] = selector.BooleanSelector()

        return self.async_show_form(
            step_id="sources",
            data_schema=vol.Schema(schema),
            errors=errors,
            description_placeholders={"info": "Choose the sensors and weather entity that describe conditions on the water."},
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> config_entries.OptionsFlow:
        return OptionsFlowHandler(config_entry)


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Fly Hatch Assistant."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        # Do NOT assign to `self.config_entry` (deprecated). Use a private attribute instead.
        self._config_entry = config_entry

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> FlowResult:
        if user_input is not None:
            return self.async_create_entry(
                title="",
                data={
                    CONF_UPDATE_INTERVAL: int(user_input[CONF_UPDATE_INTERVAL]),
                    CONF_MAX_SUGGESTIONS: int(user_input[CONF_MAX_SUGGESTIONS]),
                },
            )

        current = {**self._config_entry.data, **self._config_entry.options}
        return self.async_show_form(step_id="init", data_schema=vol.Schema(_tuning_schema(current)))
