"""Data model for the hatch-aware recommendation engine.

Every type here is immutable. Registry patterns and lure profiles are shared
read-only between concurrent scoring passes; readings, active hatch instances
and suggestions live only for a single request.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from . import unit_helpers
from .const import CATEGORICAL_DIMENSIONS, NUMERIC_DIMENSIONS

Range = Tuple[float, float]


@dataclass(frozen=True)
class EmergenceWindow:
    """Emergence window of a hatch; may wrap the year boundary (e.g. Nov -> Mar)."""

    start_month: int
    start_day: int
    peak_month: int
    peak_day: int
    end_month: int
    end_day: int


@dataclass(frozen=True)
class HatchPattern:
    """A static, authored hatch calendar record."""

    id: str
    name: str
    emergence: EmergenceWindow
    water_temp_range_f: Range
    optimal_time_of_day: Tuple[str, ...]
    rivers: Tuple[str, ...]  # may contain the "All" wildcard
    fly_patterns: Tuple[str, ...]  # recommended lure-name keywords
    size: str
    importance: str  # critical / major / moderate / minor
    stages: Tuple[str, ...]
    water_conditions: Tuple[str, ...] = ()
    weather_conditions: Tuple[str, ...] = ()
    scientific: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "scientific": self.scientific,
            "importance": self.importance,
            "size": self.size,
            "stages": list(self.stages),
            "optimal_time_of_day": list(self.optimal_time_of_day),
            "water_temp_range_f": list(self.water_temp_range_f),
            "rivers": list(self.rivers),
            "fly_patterns": list(self.fly_patterns),
        }


@dataclass(frozen=True)
class ActiveHatchInstance:
    """One life stage of a hatch that is active for a given query."""

    insect: str
    stage: str
    size: str
    intensity: str  # light / moderate / heavy
    time_period: str
    water_temp_range_f: Range

    def as_dict(self) -> Dict[str, Any]:
        return {
            "insect": self.insect,
            "stage": self.stage,
            "size": self.size,
            "intensity": self.intensity,
            "time_period": self.time_period,
            "water_temperature_range": {
                "min": self.water_temp_range_f[0],
                "max": self.water_temp_range_f[1],
            },
        }


# snake_case field -> accepted input keys (camelCase names come from the reading supplier contract)
_READING_KEYS = {
    "air_temperature_f": ("air_temperature_f", "airTemperatureF"),
    "water_temperature_f": ("water_temperature_f", "waterTemperatureF"),
    "stream_flow_cfs": ("stream_flow_cfs", "streamFlowCfs"),
    "wind_speed_mph": ("wind_speed_mph", "windSpeedMph"),
    "weather_description": ("weather_description", "weatherDescription"),
    "time_of_day": ("time_of_day", "timeOfDay"),
    "season": ("season",),
    "water_clarity": ("water_clarity", "waterClarity"),
    "latitude": ("latitude",),
    "longitude": ("longitude",),
}
_NUMERIC_READINGS = (
    "air_temperature_f",
    "water_temperature_f",
    "stream_flow_cfs",
    "wind_speed_mph",
    "latitude",
    "longitude",
)


@dataclass(frozen=True)
class EnvironmentalReadings:
    """Live readings for one query. A missing field disables its scoring dimension."""

    air_temperature_f: Optional[float] = None
    water_temperature_f: Optional[float] = None
    stream_flow_cfs: Optional[float] = None
    wind_speed_mph: Optional[float] = None
    weather_description: Optional[str] = None
    time_of_day: Optional[str] = None
    season: Optional[str] = None
    water_clarity: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EnvironmentalReadings":
        values: Dict[str, Any] = {}
        for attr, keys in _READING_KEYS.items():
            raw = None
            for key in keys:
                if data.get(key) is not None:
                    raw = data.get(key)
                    break
            if raw is None:
                continue
            if attr in _NUMERIC_READINGS:
                values[attr] = unit_helpers._to_float(raw)
            else:
                text = str(raw).strip()
                values[attr] = text or None
        return cls(**values)

    def numeric(self, dimension: str) -> Optional[float]:
        """Return the live value for a numeric profile dimension in profile units."""
        if dimension == "air_temp_c":
            return unit_helpers.f_to_c_rounded(self.air_temperature_f)
        if dimension == "water_temp_c":
            return unit_helpers.f_to_c_rounded(self.water_temperature_f)
        if dimension == "stream_flow_cfs":
            return self.stream_flow_cfs
        if dimension == "wind_speed_mph":
            return self.wind_speed_mph
        raise KeyError(dimension)

    def categorical(self, dimension: str) -> Optional[str]:
        if dimension == "weather":
            return self.weather_description
        if dimension == "time_of_day":
            return self.time_of_day
        if dimension == "season":
            return self.season
        if dimension == "water_clarity":
            return self.water_clarity
        raise KeyError(dimension)

    def as_dict(self) -> Dict[str, Any]:
        return {attr: getattr(self, attr) for attr in _READING_KEYS}


@dataclass(frozen=True)
class LureConditionProfile:
    """Normalized per-lure condition profile.

    `ideal_ranges` only holds dimensions that have data; an absent dimension means
    "no preference" and is excluded from scoring. Ranges are kept as authored so the
    scorer can detect and drop malformed (min > max) ones.
    """

    id: str
    name: str
    type: Optional[str] = None
    ideal_ranges: Mapping[str, Tuple[Any, Any]] = field(default_factory=dict)
    descriptors: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    weights: Mapping[str, float] = field(default_factory=dict)
    hatch_ids: Optional[Tuple[str, ...]] = None  # precomputed keyword association
    entomology: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LureConditionProfile":
        """Build from a persisted normalized profile dict."""
        ideal = data.get("ideal_conditions") or {}
        ranges: Dict[str, Tuple[Any, Any]] = {}
        for dim in NUMERIC_DIMENSIONS:
            value = ideal.get(dim)
            if isinstance(value, (list, tuple)) and len(value) == 2:
                ranges[dim] = (value[0], value[1])
            elif isinstance(value, Mapping) and "min" in value and "max" in value:
                ranges[dim] = (value["min"], value["max"])
            elif value is not None:
                ranges[dim] = (value, None)
        raw_desc = data.get("descriptors") or {}
        descriptors = {
            dim: tuple(str(v) for v in raw_desc.get(dim) or ())
            for dim in CATEGORICAL_DIMENSIONS
            if raw_desc.get(dim)
        }
        weights = {}
        for dim, w in (data.get("weights") or {}).items():
            wf = unit_helpers._to_float(w)
            if wf is not None:
                weights[dim] = wf
        entomology = data.get("entomology") or {}
        hatch_ids = entomology.get("hatch_ids")
        return cls(
            id=str(data.get("id")),
            name=str(data.get("name") or data.get("id")),
            type=data.get("type"),
            ideal_ranges=ranges,
            descriptors=descriptors,
            weights=weights,
            hatch_ids=tuple(hatch_ids) if isinstance(hatch_ids, (list, tuple)) else None,
            entomology=dict(entomology),
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    """Intermediate scoring result for one lure."""

    lure_id: str
    name: str
    base_score: float
    hatch_bonus: float
    score: float
    terms: Mapping[str, float]
    reasons: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Suggestion:
    """A ranked lure suggestion."""

    lure_id: str
    name: str
    score: float
    base_score: float
    hatch_bonus: float
    reasons: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "lure_id": self.lure_id,
            "name": self.name,
            "score": round(self.score, 4),
            "base_score": round(self.base_score, 4),
            "hatch_bonus": round(self.hatch_bonus, 4),
            "reasons": list(self.reasons),
            "warnings": list(self.warnings),
        }
