"""
Fly Hatch Assistant - integration entry points.

Setup loads the packaged hatch calendar and lure catalog (failing loudly on
schema problems), normalizes the catalog into a profile generation, and starts
a coordinator that ranks lures against live readings from the configured
entities.
"""
import logging

from .const import (
    DOMAIN,
    DEFAULT_UPDATE_INTERVAL,
    DEFAULT_MAX_SUGGESTIONS,
    CONF_LOCATION,
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_UPDATE_INTERVAL,
    CONF_MAX_SUGGESTIONS,
    CONF_PERSIST_PROFILES,
    READING_SOURCE_KEYS,
)

_LOGGER = logging.getLogger(__name__)

PLATFORMS = ["sensor"]


async def async_setup_entry(hass, entry):
    """Set up integration from a config entry."""

    _LOGGER.debug("Starting async_setup_entry for entry %s", entry.entry_id)

    location = entry.data.get(CONF_LOCATION)
    if not location:
        _LOGGER.error("Config entry %s missing location label; aborting setup", entry.entry_id)
        return False

    sources = {key: entry.data.get(key) for key in READING_SOURCE_KEYS}
    if not any(sources.values()):
        _LOGGER.error("Config entry %s has no reading sources configured; aborting setup", entry.entry_id)
        return False

    try:
        from .coordinator import FHACoordinator
        from .hatch_calendar import get_default_registry
        from .lure_catalog import CatalogLoader
    except ImportError as exc:
        _LOGGER.exception("Failed to import integration modules for entry %s: %s", entry.entry_id, exc)
        return False

    # Packaged data is validated at startup; schema problems fail setup
    try:
        registry = await hass.async_add_executor_job(get_default_registry)
        loader = CatalogLoader(hass)
        await loader.async_load_catalog()
    except (RuntimeError, ValueError) as exc:
        _LOGGER.exception("Packaged hatch calendar or lure catalog failed validation: %s", exc)
        return False

    options = {**entry.data, **entry.options}
    persist = bool(entry.data.get(CONF_PERSIST_PROFILES, False))

    coord = FHACoordinator(
        hass,
        entry.entry_id,
        location=location,
        lat=entry.data.get(CONF_LATITUDE),
        lon=entry.data.get(CONF_LONGITUDE),
        sources=sources,
        update_interval=int(options.get(CONF_UPDATE_INTERVAL, DEFAULT_UPDATE_INTERVAL)),
        max_suggestions=int(options.get(CONF_MAX_SUGGESTIONS, DEFAULT_MAX_SUGGESTIONS)),
        store_enabled=persist,
        registry=registry,
        config_entry=entry,
    )
    _LOGGER.debug("FHACoordinator created for entry %s", entry.entry_id)

    if persist:
        try:
            loaded = await coord.async_load_from_store()
            _LOGGER.debug("Persisted profile generation for entry %s loaded=%s", entry.entry_id, loaded)
        except RuntimeError:
            # a fresh generation is built right below
            _LOGGER.exception("Failed to load persisted profiles for entry %s", entry.entry_id)

    # keeps the restored generation when the packaged catalog is unchanged
    await coord.async_update_profiles(loader.get_lures())

    _LOGGER.debug("Requesting initial data refresh for entry %s", entry.entry_id)
    await coord.async_config_entry_first_refresh()

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coord
    _LOGGER.debug("Stored coordinator in hass.data[%s][%s]", DOMAIN, entry.entry_id)

    entry.async_on_unload(entry.add_update_listener(_async_reload_entry))

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _LOGGER.debug("async_setup_entry completed for entry %s", entry.entry_id)
    return True


async def _async_reload_entry(hass, entry):
    """Options changed: rebuild the coordinator."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass, entry):
    """Unload a config entry."""
    _LOGGER.debug("Starting async_unload_entry for entry %s", entry.entry_id)
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        removed = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
        _LOGGER.debug("Removed coordinator from hass.data for entry %s: %s", entry.entry_id, removed)
    _LOGGER.debug("async_unload_entry finished for entry %s, unload_ok=%s", entry.entry_id, unload_ok)
    return unload_ok
