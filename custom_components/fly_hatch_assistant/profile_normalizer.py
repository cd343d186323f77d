"""Lure condition profile normalizer.

Turns authored, loosely structured lure records into canonical profiles:

  - temperatures (°F {min, max}) -> °C ranges rounded to one decimal
  - flow / wind descriptors -> numeric bands (union of matched bands)
  - categorical descriptors -> lower-case, de-duplicated, sorted lists
  - one weight per present dimension, derived from the fly type
  - an entomology summary with the registry's precomputed hatch ids

A dimension without usable source data is left out of the profile. Feeding a
normalized profile back in yields the same canonical JSON (see dumps_profile).
"""
from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from . import unit_helpers
from .const import (
    DIM_AIR_TEMP,
    DIM_SEASON,
    DIM_STREAM_FLOW,
    DIM_TIME_OF_DAY,
    DIM_WATER_CLARITY,
    DIM_WATER_TEMP,
    DIM_WEATHER,
    DIM_WIND_SPEED,
    CATEGORICAL_DIMENSIONS,
    FLY_TYPE_BEHAVIOR,
    INSECT_ORDERS,
    MONTH_NAMES,
    NUMERIC_DIMENSIONS,
    PROFILE_VERSION,
    STREAM_FLOW_BANDS,
    WEATHER_SYNONYMS,
    WIND_SPEED_BANDS,
)
from .hatch_calendar import HatchRegistry, get_default_registry
from .hatch_evaluator import season_for_date

_LOGGER = logging.getLogger(__name__)

# categorical dimension -> authored best_conditions key
_DESCRIPTOR_SOURCES = {
    DIM_WEATHER: "weather",
    DIM_TIME_OF_DAY: "time_of_day",
    DIM_SEASON: "time_of_year",
    DIM_WATER_CLARITY: "water_clarity",
}

_MONTH_TO_SEASON = {
    name.lower(): season_for_date(date(2001, idx + 1, 1)) for idx, name in enumerate(MONTH_NAMES)
}

_HOOK_SIZE_RE = re.compile(r"\d+")


def dumps_profile(profile: Mapping[str, Any]) -> str:
    """Canonical JSON for a profile: sorted keys, no insignificant whitespace."""
    return json.dumps(profile, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _canon_token(value: Any) -> str:
    return re.sub(r"\s+", "_", str(value).strip().lower())


def _canon_descriptors(dimension: str, values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out = set()
    for v in values:
        token = _canon_token(v)
        if not token:
            continue
        if dimension == DIM_WEATHER:
            token = WEATHER_SYNONYMS.get(token, token)
        elif dimension == DIM_SEASON:
            token = _MONTH_TO_SEASON.get(token, token)
            if token == "autumn":
                token = "fall"
        out.add(token)
    return sorted(out)


def _merge_bands(descriptors: Any, bands: Mapping[str, Tuple[float, float]]) -> Optional[Tuple[float, float]]:
    """Union of the bands matched by the descriptors; None when nothing matches."""
    if descriptors is None:
        return None
    if isinstance(descriptors, str):
        descriptors = [descriptors]
    matched = []
    for d in descriptors:
        key = str(d).strip().lower().replace("_", " ")
        band = bands.get(key) or bands.get(key.replace(" ", "_"))
        if band is not None:
            matched.append(band)
    if not matched:
        return None
    return min(b[0] for b in matched), max(b[1] for b in matched)


def _canon_range(lure_id: str, dimension: str, low: Any, high: Any, warnings: List[str]) -> Optional[List[float]]:
    lo = unit_helpers._to_float(low)
    hi = unit_helpers._to_float(high)
    if lo is None or hi is None:
        warnings.append(f"{lure_id}: {dimension} range {[low, high]!r} is not numeric; dimension omitted")
        return None
    if lo > hi:
        warnings.append(f"{lure_id}: {dimension} range min {lo} > max {hi}; dimension omitted")
        return None
    return [round(lo, 1), round(hi, 1)]


def _fahrenheit_range(lure_id: str, dimension: str, bounds: Any, warnings: List[str]) -> Optional[List[float]]:
    if bounds is None:
        return None
    if not isinstance(bounds, Mapping) or "min" not in bounds or "max" not in bounds:
        warnings.append(f"{lure_id}: {dimension} needs both min and max; dimension omitted")
        return None
    low = unit_helpers.f_to_c_rounded(bounds["min"])
    high = unit_helpers.f_to_c_rounded(bounds["max"])
    if low is None or high is None:
        warnings.append(f"{lure_id}: {dimension} range {bounds!r} is not numeric; dimension omitted")
        return None
    return _canon_range(lure_id, dimension, low, high, warnings)


def _weights_for(fly_type: Optional[str], ideal: Mapping[str, Any], descriptors: Mapping[str, Any]) -> Dict[str, float]:
    t = (fly_type or "").lower()
    table = {
        DIM_AIR_TEMP: 1.1 if t in ("dry", "terrestrial") else 0.8,
        DIM_WATER_TEMP: 1.3 if t in ("nymph", "streamer") else 1.0,
        DIM_STREAM_FLOW: 1.4 if t == "streamer" else 1.0,
        DIM_WIND_SPEED: 0.4,
        DIM_WEATHER: 0.7,
        DIM_TIME_OF_DAY: 0.5,
        DIM_SEASON: 0.5,
        DIM_WATER_CLARITY: 0.5,
    }
    present = list(ideal) + list(descriptors)
    return {dim: table[dim] for dim in present}


def _ordered_unique(values: Any) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return out


def _insect_order(insects: Iterable[str]) -> Optional[str]:
    for insect in insects:
        lowered = insect.lower()
        for key, order in INSECT_ORDERS.items():
            if key in lowered:
                return order
    return None


def _size_range(sizes: Iterable[str]) -> Optional[List[int]]:
    numbers = [int(n) for s in sizes for n in _HOOK_SIZE_RE.findall(str(s))]
    if not numbers:
        return None
    return [min(numbers), max(numbers)]


def _entomology(
    name: str,
    fly_type: Optional[str],
    insects: Any,
    stages: Any,
    sizes: Any,
    registry: HatchRegistry,
) -> Dict[str, Any]:
    insect_list = _ordered_unique(insects)
    size_list = _ordered_unique(sizes)
    return {
        "insects": insect_list,
        "order": _insect_order(insect_list),
        "stages": sorted({s.lower() for s in _ordered_unique(stages)}),
        "sizes": size_list,
        "size_range": _size_range(size_list),
        "behavior": FLY_TYPE_BEHAVIOR.get((fly_type or "").lower()),
        "hatch_ids": list(registry.hatch_ids_for_lure(name)),
    }


def _normalize_authored(record: Mapping[str, Any], lure_id: str, warnings: List[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    best = record.get("best_conditions") or {}
    ideal: Dict[str, Any] = {}

    air = _fahrenheit_range(lure_id, DIM_AIR_TEMP, best.get("air_temperature_range"), warnings)
    if air is not None:
        ideal[DIM_AIR_TEMP] = air
    water = _fahrenheit_range(lure_id, DIM_WATER_TEMP, best.get("water_temperature_range"), warnings)
    if water is not None:
        ideal[DIM_WATER_TEMP] = water

    for dim, source, bands in (
        (DIM_STREAM_FLOW, "water_flow", STREAM_FLOW_BANDS),
        (DIM_WIND_SPEED, "wind_conditions", WIND_SPEED_BANDS),
    ):
        band = _merge_bands(best.get(source), bands)
        if band is not None:
            canon = _canon_range(lure_id, dim, band[0], band[1], warnings)
            if canon is not None:
                ideal[dim] = canon
        elif best.get(source):
            _LOGGER.debug("%s: no known %s descriptors in %r", lure_id, source, best.get(source))

    descriptors = {}
    for dim, source in _DESCRIPTOR_SOURCES.items():
        values = _canon_descriptors(dim, best.get(source))
        if values:
            descriptors[dim] = values
    return ideal, descriptors


def _normalize_profiled(record: Mapping[str, Any], lure_id: str, warnings: List[str]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    raw_ideal = record.get("ideal_conditions") or {}
    ideal: Dict[str, Any] = {}
    for dim in NUMERIC_DIMENSIONS:
        value = raw_ideal.get(dim)
        if value is None:
            continue
        if isinstance(value, Mapping):
            value = [value.get("min"), value.get("max")]
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            warnings.append(f"{lure_id}: {dim} range {value!r} is malformed; dimension omitted")
            continue
        canon = _canon_range(lure_id, dim, value[0], value[1], warnings)
        if canon is not None:
            ideal[dim] = canon

    raw_desc = record.get("descriptors") or {}
    descriptors = {}
    for dim in CATEGORICAL_DIMENSIONS:
        values = _canon_descriptors(dim, raw_desc.get(dim))
        if values:
            descriptors[dim] = values
    return ideal, descriptors


def normalize_lure(record: Mapping[str, Any], registry: Optional[HatchRegistry] = None) -> Tuple[Dict[str, Any], List[str]]:
    """Normalize one lure record. Returns (profile, warnings).

    Accepts either an authored catalog record or an already-normalized profile.
    """
    registry = registry if registry is not None else get_default_registry()
    warnings: List[str] = []
    lure_id = str(record.get("id"))
    name = str(record.get("name") or lure_id)
    fly_type = record.get("type")
    fly_type = str(fly_type).strip().lower() if fly_type else None

    if "ideal_conditions" in record:
        ideal, descriptors = _normalize_profiled(record, lure_id, warnings)
        ento = record.get("entomology") or {}
        insects, stages, sizes = ento.get("insects"), ento.get("stages"), ento.get("sizes")
    else:
        ideal, descriptors = _normalize_authored(record, lure_id, warnings)
        hatch = record.get("hatch_matching") or {}
        insects = hatch.get("insects")
        stages = hatch.get("stages")
        sizes = hatch.get("sizes") or record.get("sizes_available")

    profile: Dict[str, Any] = {
        "version": PROFILE_VERSION,
        "id": lure_id,
        "name": name,
        "type": fly_type,
        "ideal_conditions": ideal,
        "descriptors": descriptors,
        "weights": _weights_for(fly_type, ideal, descriptors),
        "entomology": _entomology(name, fly_type, insects, stages, sizes, registry),
    }
    for key in ("pattern_name", "color", "primary_size", "description"):
        if record.get(key):
            profile[key] = str(record[key])

    for message in warnings:
        _LOGGER.warning("Lure profile %s", message)
    return profile, warnings


def normalize_catalog(records: Iterable[Mapping[str, Any]], registry: Optional[HatchRegistry] = None) -> Dict[str, Any]:
    """Normalize a whole catalog into a new profile generation.

    The generation id is the SHA-1 of the canonical JSON of all profiles, so
    identical input always produces the same generation.
    """
    registry = registry if registry is not None else get_default_registry()
    profiles: Dict[str, Dict[str, Any]] = {}
    warnings: List[str] = []

    for idx, record in enumerate(records or []):
        if not isinstance(record, Mapping) or not record.get("id"):
            msg = f"record #{idx} has no id; skipped"
            _LOGGER.warning("Lure catalog %s", msg)
            warnings.append(msg)
            continue
        lure_id = str(record["id"])
        if lure_id in profiles:
            msg = f"duplicate lure id {lure_id!r}; keeping the first"
            _LOGGER.warning("Lure catalog %s", msg)
            warnings.append(msg)
            continue
        profile, lure_warnings = normalize_lure(record, registry)
        profiles[lure_id] = profile
        warnings.extend(lure_warnings)

    generation = hashlib.sha1(dumps_profile(profiles).encode("utf-8")).hexdigest()
    _LOGGER.debug("Normalized %d lure profiles into generation %s", len(profiles), generation)
    return {"generation": generation, "profiles": profiles, "warnings": warnings}
