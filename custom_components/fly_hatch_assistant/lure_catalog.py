"""Lure catalog loader for Fly Hatch Assistant (strict, no fallbacks)."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from homeassistant.core import HomeAssistant

from .const import LURE_CATALOG_FILE

_LOGGER = logging.getLogger(__name__)


class CatalogLoader:
    """Load authored lure records from the packaged JSON file.

    Strict behaviour: on any load/validation error this loader will raise.
    """

    def __init__(self, hass: HomeAssistant, path: Optional[str] = None) -> None:
        self.hass = hass
        self._path = path or os.path.join(os.path.dirname(__file__), LURE_CATALOG_FILE)
        self._catalog: Optional[Dict[str, Any]] = None

    async def async_load_catalog(self) -> None:
        """Read and validate the catalog file.

        Raises RuntimeError on any error so callers can fail loudly.
        """
        json_path = self._path

        def _read_file() -> Dict[str, Any]:
            with open(json_path, "r", encoding="utf-8") as fp:
                return json.load(fp)

        try:
            catalog = await self.hass.async_add_executor_job(_read_file)
        except FileNotFoundError as exc:
            _LOGGER.exception("Lure catalog not found at %s", json_path)
            raise RuntimeError(f"{LURE_CATALOG_FILE} missing") from exc
        except (OSError, ValueError) as exc:
            _LOGGER.exception("Failed to read lure catalog %s: %s", json_path, exc)
            raise RuntimeError(f"Failed to read {LURE_CATALOG_FILE}") from exc

        if not isinstance(catalog, dict):
            _LOGGER.error("Lure catalog root element is not a JSON object")
            raise RuntimeError("Invalid lure catalog: root not an object")

        if not isinstance(catalog.get("lures"), dict):
            _LOGGER.error("Lure catalog is missing the 'lures' object")
            raise RuntimeError("Invalid lure catalog: 'lures' must be an object")

        for lure_id, data in catalog["lures"].items():
            if not isinstance(data, dict):
                raise RuntimeError(f"Invalid lure catalog: entry {lure_id!r} is not an object")
            if not data.get("name"):
                raise RuntimeError(f"Invalid lure catalog: entry {lure_id!r} has no name")

        _LOGGER.info(
            "Loaded lure catalog version %s with %d lures",
            catalog.get("version", "unknown"),
            len(catalog["lures"]),
        )
        self._catalog = catalog

    def _ensure_loaded(self) -> None:
        if self._catalog is None:
            _LOGGER.error("CatalogLoader used before the catalog was loaded")
            raise RuntimeError("Lure catalog not loaded")

    @property
    def version(self) -> Optional[str]:
        self._ensure_loaded()
        return self._catalog.get("version")

    def get_lure(self, lure_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the authored record with the given id, or None."""
        self._ensure_loaded()
        data = self._catalog["lures"].get(lure_id)
        if data is None:
            return None
        record = dict(data)
        record["id"] = lure_id
        return record

    def get_lures(self) -> List[Dict[str, Any]]:
        """Return all authored records (copies) in file order."""
        self._ensure_loaded()
        lures: List[Dict[str, Any]] = []
        for lure_id, data in self._catalog["lures"].items():
            record = dict(data)
            record["id"] = lure_id
            lures.append(record)
        return lures

    def get_lures_by_type(self, fly_type: str) -> List[Dict[str, Any]]:
        """Return records of one fly type (dry, nymph, emerger, streamer, ...)."""
        wanted = fly_type.lower()
        return [r for r in self.get_lures() if str(r.get("type", "")).lower() == wanted]
