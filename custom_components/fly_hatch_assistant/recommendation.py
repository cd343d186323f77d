"""Recommendation scoring.

base score = sum(weight * closeness) / sum(weight) over the dimensions present in
both the lure profile and the live readings. A numeric closeness term is 1.0
inside the ideal range and falls linearly to 0.0 at FALLOFF[dim] outside it.
Categorical terms are 1.0 on a match and 0.0 otherwise. A lure with no usable
dimension gets NEUTRAL_BASE_SCORE.

final score = clamp(base score + hatch bonus, 0, 1)

Per-lure data problems never fail the call; they end up in the suggestion's
warnings. Only a missing readings object raises InvalidRequestError.
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from . import unit_helpers
from .const import (
    CATEGORICAL_DIMENSIONS,
    DIM_WEATHER,
    DIMENSION_LABELS,
    FALLOFF,
    IMPORTANCE_BONUS,
    NEUTRAL_BASE_SCORE,
    NUMERIC_DIMENSIONS,
)
from .hatch_calendar import HatchRegistry
from .hatch_evaluator import get_active_hatches, hatch_reason, matching_hatches, season_for_date
from .models import EnvironmentalReadings, HatchPattern, LureConditionProfile, ScoreBreakdown, Suggestion

_LOGGER = logging.getLogger(__name__)

DEFAULT_WEIGHT = 1.0
DEFAULT_CATEGORICAL_WEIGHT = 0.5

ProfileLike = Union[LureConditionProfile, Mapping[str, Any]]
ReadingsLike = Union[EnvironmentalReadings, Mapping[str, Any]]


class InvalidRequestError(ValueError):
    """Raised when the request itself is structurally invalid (e.g. no readings)."""


def closeness(value: float, low: float, high: float, falloff: float) -> float:
    """1.0 inside [low, high], decaying linearly to 0.0 at `falloff` outside it."""
    if low <= value <= high:
        return 1.0
    distance = low - value if value < low else value - high
    if falloff <= 0:
        return 0.0
    return max(0.0, 1.0 - distance / falloff)


def _clamp_0_1(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def _coerce_readings(readings: Optional[ReadingsLike]) -> EnvironmentalReadings:
    if readings is None:
        raise InvalidRequestError("readings are required")
    if isinstance(readings, EnvironmentalReadings):
        return readings
    if isinstance(readings, Mapping):
        return EnvironmentalReadings.from_mapping(readings)
    raise InvalidRequestError(f"unsupported readings type {type(readings).__name__}")


def _coerce_profile(profile: ProfileLike) -> LureConditionProfile:
    if isinstance(profile, LureConditionProfile):
        return profile
    return LureConditionProfile.from_dict(profile)


def _categorical_match(dimension: str, wanted: Sequence[str], reading: str) -> bool:
    value = reading.strip().lower().replace(" ", "_")
    for w in wanted:
        w = w.lower()
        if w == value:
            return True
        if dimension == DIM_WEATHER and (w in value or value in w):
            return True
    return False


def _matched_hatches(profile: LureConditionProfile, active_hatches: Sequence[HatchPattern]) -> List[HatchPattern]:
    if profile.hatch_ids is not None:
        ids = set(profile.hatch_ids)
        return [h for h in active_hatches if h.id in ids]
    return matching_hatches(profile.name, active_hatches)


def score_profile(
    profile: ProfileLike,
    readings: ReadingsLike,
    active_hatches: Sequence[HatchPattern],
    on_date: Optional[date] = None,
) -> ScoreBreakdown:
    """Score one lure and explain the result."""
    readings = _coerce_readings(readings)
    profile = _coerce_profile(profile)
    on_date = on_date or date.today()

    terms: Dict[str, float] = {}
    reasons: List[str] = []
    warnings: List[str] = []
    weighted_sum = 0.0
    total_weight = 0.0

    for dim in NUMERIC_DIMENSIONS:
        rng = profile.ideal_ranges.get(dim)
        if rng is None:
            continue
        low, high = unit_helpers._to_float(rng[0]), unit_helpers._to_float(rng[1])
        if low is None or high is None or low > high:
            msg = f"{DIMENSION_LABELS[dim]} range {list(rng)} is malformed; dimension ignored"
            _LOGGER.warning("Lure %s: %s", profile.id, msg)
            warnings.append(msg)
            continue
        value = readings.numeric(dim)
        if value is None:
            continue
        weight = profile.weights.get(dim, DEFAULT_WEIGHT)
        term = closeness(value, low, high, FALLOFF[dim])
        terms[dim] = term
        weighted_sum += weight * term
        total_weight += weight
        if term == 1.0:
            reasons.append(f"{DIMENSION_LABELS[dim]} in ideal range")

    for dim in CATEGORICAL_DIMENSIONS:
        wanted = profile.descriptors.get(dim)
        reading = readings.categorical(dim)
        if not wanted or not reading:
            continue
        weight = profile.weights.get(dim, DEFAULT_CATEGORICAL_WEIGHT)
        term = 1.0 if _categorical_match(dim, wanted, reading) else 0.0
        terms[dim] = term
        weighted_sum += weight * term
        total_weight += weight
        if term:
            reasons.append(f"{DIMENSION_LABELS[dim]} suits this fly ({reading})")

    if total_weight > 0:
        base = weighted_sum / total_weight
    else:
        base = NEUTRAL_BASE_SCORE
        reasons.append("No matching condition data; neutral score")

    matched = _matched_hatches(profile, active_hatches)
    bonus = max((IMPORTANCE_BONUS[h.importance] for h in matched), default=0.0)
    reasons.extend(hatch_reason(h, on_date) for h in matched)

    return ScoreBreakdown(
        lure_id=profile.id,
        name=profile.name,
        base_score=base,
        hatch_bonus=bonus,
        score=_clamp_0_1(base + bonus),
        terms=terms,
        reasons=tuple(reasons),
        warnings=tuple(warnings),
    )


def score(profile: ProfileLike, readings: ReadingsLike, active_hatches: Sequence[HatchPattern]) -> float:
    """Final score in [0, 1]."""
    return score_profile(profile, readings, active_hatches).score


def rank_suggestions(breakdowns: Iterable[ScoreBreakdown]) -> List[Suggestion]:
    """Descending by score; ties broken by name, then id."""
    ordered = sorted(breakdowns, key=lambda b: (-b.score, b.name, b.lure_id))
    return [
        Suggestion(
            lure_id=b.lure_id,
            name=b.name,
            score=b.score,
            base_score=b.base_score,
            hatch_bonus=b.hatch_bonus,
            reasons=b.reasons,
            warnings=b.warnings,
        )
        for b in ordered
    ]


def _iter_profiles(catalog: Any) -> List[ProfileLike]:
    if not catalog:
        return []
    if isinstance(catalog, Mapping):
        return list(catalog.values())
    return list(catalog)


def get_suggestions(
    readings: ReadingsLike,
    on_date: date,
    location_label: Optional[str],
    catalog: Any,
    registry: Optional[HatchRegistry] = None,
    limit: Optional[int] = None,
    active_hatches: Optional[Sequence[HatchPattern]] = None,
) -> List[Suggestion]:
    """Rank every lure of `catalog` for the given readings, date and location.

    `catalog` is a mapping of lure id -> normalized profile, or an iterable of
    profiles. An empty catalog gives an empty list. A missing season reading is
    filled in from `on_date`. Callers that already hold the active hatches for
    `on_date` pass them as `active_hatches`.
    """
    readings = _coerce_readings(readings)
    profiles = _iter_profiles(catalog)
    if not profiles:
        _LOGGER.debug("Empty lure catalog; no suggestions")
        return []
    if readings.season is None:
        readings = dataclasses.replace(readings, season=season_for_date(on_date))

    active = active_hatches
    if active is None:
        active = get_active_hatches(on_date, readings.water_temperature_f, location_label, registry)
    _LOGGER.debug(
        "Scoring %d lures against %d active hatches for %s at %r",
        len(profiles),
        len(active),
        on_date.isoformat(),
        location_label,
    )
    ranked = rank_suggestions(score_profile(p, readings, active, on_date) for p in profiles)
    if limit is not None:
        ranked = ranked[: max(0, int(limit))]
    return ranked
