"""Hatch calendar registry (strict, immutable after load).

Patterns are loaded once from the packaged hatch_calendar.json and kept in an
insertion-ordered, read-only mapping keyed by pattern id. Registry order is the
tie-breaker for every ordering the evaluator produces, so it must be stable.
"""
from __future__ import annotations

import functools
import json
import logging
import os
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .const import (
    DAYS_IN_MONTH,
    HATCH_CALENDAR_FILE,
    IMPORTANCE_LEVELS,
    LIFE_STAGES,
)
from .models import EmergenceWindow, HatchPattern

_LOGGER = logging.getLogger(__name__)

_REQUIRED_KEYS = (
    "name",
    "emergence",
    "water_temp_range_f",
    "optimal_time_of_day",
    "rivers",
    "fly_patterns",
    "size",
    "importance",
    "stages",
)
_EMERGENCE_KEYS = ("start_month", "start_day", "peak_month", "peak_day", "end_month", "end_day")


class RegistryError(ValueError):
    """Raised when the hatch calendar file is missing or malformed."""


def names_match(lure_name: str, keyword: str) -> bool:
    """Loose lure-name/keyword association: case-insensitive containment either way."""
    a = (lure_name or "").strip().lower()
    b = (keyword or "").strip().lower()
    if not a or not b:
        return False
    return b in a or a in b


def _check_month_day(hatch_id: str, label: str, month: Any, day: Any) -> Tuple[int, int]:
    try:
        m = int(month)
        d = int(day)
    except (TypeError, ValueError) as exc:
        raise RegistryError(f"{hatch_id}: {label} month/day not integers ({month!r}/{day!r})") from exc
    if not 1 <= m <= 12:
        raise RegistryError(f"{hatch_id}: {label} month {m} out of range")
    if not 1 <= d <= DAYS_IN_MONTH[m - 1]:
        raise RegistryError(f"{hatch_id}: {label} day {d} out of range for month {m}")
    return m, d


def _str_tuple(hatch_id: str, key: str, value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise RegistryError(f"{hatch_id}: '{key}' must be a list")
    return tuple(str(v) for v in value)


def _parse_pattern(hatch_id: str, data: Any) -> HatchPattern:
    if not isinstance(data, dict):
        raise RegistryError(f"{hatch_id}: pattern must be an object")
    missing = [k for k in _REQUIRED_KEYS if k not in data]
    if missing:
        raise RegistryError(f"{hatch_id}: missing keys {missing}")

    em = data["emergence"]
    if not isinstance(em, dict) or any(k not in em for k in _EMERGENCE_KEYS):
        raise RegistryError(f"{hatch_id}: emergence must define {list(_EMERGENCE_KEYS)}")
    start = _check_month_day(hatch_id, "start", em["start_month"], em["start_day"])
    peak = _check_month_day(hatch_id, "peak", em["peak_month"], em["peak_day"])
    end = _check_month_day(hatch_id, "end", em["end_month"], em["end_day"])

    temp = data["water_temp_range_f"]
    if not isinstance(temp, (list, tuple)) or len(temp) != 2:
        raise RegistryError(f"{hatch_id}: water_temp_range_f must be [min, max]")
    try:
        t_min, t_max = float(temp[0]), float(temp[1])
    except (TypeError, ValueError) as exc:
        raise RegistryError(f"{hatch_id}: water_temp_range_f not numeric") from exc
    if t_min > t_max:
        raise RegistryError(f"{hatch_id}: water_temp_range_f min {t_min} > max {t_max}")

    importance = str(data["importance"]).lower()
    if importance not in IMPORTANCE_LEVELS:
        raise RegistryError(f"{hatch_id}: unknown importance {data['importance']!r}")

    stages = tuple(s.lower() for s in _str_tuple(hatch_id, "stages", data["stages"]))
    bad_stages = [s for s in stages if s not in LIFE_STAGES]
    if bad_stages:
        raise RegistryError(f"{hatch_id}: unknown life stages {bad_stages}")

    return HatchPattern(
        id=hatch_id,
        name=str(data["name"]),
        scientific=data.get("scientific"),
        emergence=EmergenceWindow(
            start_month=start[0],
            start_day=start[1],
            peak_month=peak[0],
            peak_day=peak[1],
            end_month=end[0],
            end_day=end[1],
        ),
        water_temp_range_f=(t_min, t_max),
        optimal_time_of_day=_str_tuple(hatch_id, "optimal_time_of_day", data["optimal_time_of_day"]),
        rivers=_str_tuple(hatch_id, "rivers", data["rivers"]),
        fly_patterns=_str_tuple(hatch_id, "fly_patterns", data["fly_patterns"]),
        size=str(data["size"]),
        importance=importance,
        stages=stages,
        water_conditions=_str_tuple(hatch_id, "water_conditions", data.get("water_conditions", [])),
        weather_conditions=_str_tuple(hatch_id, "weather_conditions", data.get("weather_conditions", [])),
    )


class HatchRegistry(Mapping[str, HatchPattern]):
    """Read-only, ordered registry of hatch patterns with a keyword association table."""

    def __init__(self, patterns: List[HatchPattern], version: Optional[str] = None) -> None:
        ordered: Dict[str, HatchPattern] = {}
        for p in patterns:
            if p.id in ordered:
                raise RegistryError(f"Duplicate hatch id {p.id!r}")
            ordered[p.id] = p
        self._patterns = MappingProxyType(ordered)
        self.version = version

        # keyword token (lower case) -> hatch ids, in registry order
        index: Dict[str, List[str]] = {}
        for p in patterns:
            for token in p.fly_patterns:
                key = token.strip().lower()
                if not key:
                    continue
                ids = index.setdefault(key, [])
                if p.id not in ids:
                    ids.append(p.id)
        self._keyword_index = MappingProxyType({k: tuple(v) for k, v in index.items()})
        self._match_cache: Dict[str, Tuple[str, ...]] = {}

    def __getitem__(self, hatch_id: str) -> HatchPattern:
        return self._patterns[hatch_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def patterns(self) -> List[HatchPattern]:
        """Return patterns in registry order."""
        return list(self._patterns.values())

    @property
    def keyword_index(self) -> Mapping[str, Tuple[str, ...]]:
        return self._keyword_index

    def hatch_ids_for_lure(self, lure_name: str) -> Tuple[str, ...]:
        """Return ids of every hatch whose keywords are associated with `lure_name`.

        An exact keyword hit is resolved from the table; other names fall back to the
        containment rule over the distinct keywords. Results are memoised per name.
        """
        key = (lure_name or "").strip().lower()
        if not key:
            return ()
        cached = self._match_cache.get(key)
        if cached is not None:
            return cached

        matched = set(self._keyword_index.get(key, ()))
        for token, ids in self._keyword_index.items():
            if names_match(key, token):
                matched.update(ids)
        result = tuple(hid for hid in self._patterns if hid in matched)
        self._match_cache[key] = result
        return result


def load_registry(path: Optional[str] = None) -> HatchRegistry:
    """Read and validate a hatch calendar file. Raises RegistryError on any problem."""
    json_path = path or os.path.join(os.path.dirname(__file__), HATCH_CALENDAR_FILE)
    try:
        with open(json_path, "r", encoding="utf-8") as fp:
            raw = json.load(fp)
    except FileNotFoundError as exc:
        _LOGGER.exception("Hatch calendar not found at %s", json_path)
        raise RegistryError(f"Hatch calendar missing: {json_path}") from exc
    except json.JSONDecodeError as exc:
        _LOGGER.exception("Hatch calendar at %s is not valid JSON", json_path)
        raise RegistryError(f"Hatch calendar is not valid JSON: {json_path}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("hatches"), dict):
        raise RegistryError("Invalid hatch calendar: root must be an object with a 'hatches' object")

    patterns = [_parse_pattern(hid, data) for hid, data in raw["hatches"].items()]
    registry = HatchRegistry(patterns, version=raw.get("version"))
    _LOGGER.info(
        "Loaded hatch calendar version %s with %d patterns and %d keywords",
        registry.version or "unknown",
        len(registry),
        len(registry.keyword_index),
    )
    return registry


@functools.lru_cache(maxsize=1)
def get_default_registry() -> HatchRegistry:
    """Return the packaged registry, loading it on first use."""
    return load_registry()
