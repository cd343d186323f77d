"""Hatch activity evaluation.

Pure functions over an immutable HatchRegistry. Dates are reduced to a 0-based
day-of-year ordinal with a fixed 28-day February (leap-year agnostic), so
Feb 29 evaluates the same as Mar 1.

Emergence windows may wrap the year boundary: when the start ordinal is after
the end ordinal, membership is `date >= start OR date <= end`. Peak distance is
circular as well, so a Dec 28 peak is 6 days from Jan 3.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .const import (
    DAYS_IN_MONTH,
    DAYS_IN_YEAR,
    HEAVY_INTENSITY_DAYS,
    IMPORTANCE_BONUS,
    IMPORTANCE_RANK,
    MONTH_NAMES,
    PEAK_WINDOW_DAYS,
    SEASON_WATER_CONDITIONS,
    WILDCARD_RIVER,
)
from .hatch_calendar import HatchRegistry, get_default_registry, names_match
from .models import ActiveHatchInstance, HatchPattern

_LOGGER = logging.getLogger(__name__)


def day_of_year(month: int, day: int) -> int:
    """0-based ordinal of (month, day) in a 365-day year."""
    return sum(DAYS_IN_MONTH[: month - 1]) + day - 1


def _ordinal(on_date: date) -> int:
    return day_of_year(on_date.month, on_date.day)


def is_active(on_date: date, water_temp_f: Optional[float], hatch: HatchPattern) -> bool:
    """Return True when `on_date` is inside the hatch's emergence window.

    If `water_temp_f` is given the reading must also fall in the hatch's water
    temperature range; if it is None the result is date-only.
    """
    em = hatch.emergence
    current = _ordinal(on_date)
    start = day_of_year(em.start_month, em.start_day)
    end = day_of_year(em.end_month, em.end_day)

    if start <= end:
        in_window = start <= current <= end
    else:
        in_window = current >= start or current <= end
    if not in_window:
        return False

    if water_temp_f is None:
        return True
    t_min, t_max = hatch.water_temp_range_f
    return t_min <= float(water_temp_f) <= t_max


def days_from_peak(on_date: date, hatch: HatchPattern) -> int:
    em = hatch.emergence
    diff = abs(_ordinal(on_date) - day_of_year(em.peak_month, em.peak_day))
    return min(diff, DAYS_IN_YEAR - diff)


def is_peak(on_date: date, hatch: HatchPattern) -> bool:
    """True within PEAK_WINDOW_DAYS of the historical peak date."""
    return days_from_peak(on_date, hatch) <= PEAK_WINDOW_DAYS


def intensity_for(on_date: date, hatch: HatchPattern) -> str:
    distance = days_from_peak(on_date, hatch)
    if distance <= HEAVY_INTENSITY_DAYS:
        return "heavy"
    if distance <= PEAK_WINDOW_DAYS:
        return "moderate"
    return "light"


def river_matches(hatch: HatchPattern, location_label: str) -> bool:
    """True when the hatch is wildcard or one of its rivers appears in the label."""
    label = location_label.strip().lower()
    for river in hatch.rivers:
        r = river.strip().lower()
        if r == WILDCARD_RIVER.lower():
            return True
        if r and r in label:
            return True
    return False


def get_active_hatches(
    on_date: date,
    water_temp_f: Optional[float] = None,
    location_label: Optional[str] = None,
    registry: Optional[HatchRegistry] = None,
) -> List[HatchPattern]:
    """Return active hatches: peak first, then by importance, then registry order."""
    registry = registry if registry is not None else get_default_registry()
    label = location_label.strip() if location_label else ""

    if label and not any(
        river_matches(h, label) for h in registry.patterns() if WILDCARD_RIVER not in h.rivers
    ):
        _LOGGER.debug("Location %r matches no river-specific hatch; only wildcard hatches apply", label)

    candidates = []
    for position, hatch in enumerate(registry.patterns()):
        if not is_active(on_date, water_temp_f, hatch):
            continue
        if label and not river_matches(hatch, label):
            continue
        candidates.append((0 if is_peak(on_date, hatch) else 1, IMPORTANCE_RANK[hatch.importance], position, hatch))

    candidates.sort(key=lambda c: c[:3])
    return [c[3] for c in candidates]


def matching_hatches(lure_name: str, active_hatches: Iterable[HatchPattern]) -> List[HatchPattern]:
    """Active hatches with at least one keyword associated with `lure_name`, in the order given."""
    return [h for h in active_hatches if any(names_match(lure_name, token) for token in h.fly_patterns)]


def get_hatch_bonus(lure_name: str, active_hatches: Sequence[HatchPattern]) -> float:
    """Largest importance bonus among active hatches associated with the lure name.

    The maximum is taken, never the sum, so many weak matches cannot stack.
    """
    return max((IMPORTANCE_BONUS[h.importance] for h in matching_hatches(lure_name, active_hatches)), default=0.0)


def get_hatch_reasons(
    lure_name: str,
    active_hatches: Sequence[HatchPattern],
    on_date: Optional[date] = None,
) -> List[str]:
    """One explanation per matching active hatch, in the order given."""
    on_date = on_date or date.today()
    return [hatch_reason(hatch, on_date) for hatch in matching_hatches(lure_name, active_hatches)]


def hatch_reason(hatch: HatchPattern, on_date: date) -> str:
    if is_peak(on_date, hatch):
        return f"Peak {hatch.name} hatch right now"
    return f"Active {hatch.name} hatch"


def get_active_hatch_instances(
    on_date: date,
    water_temp_f: Optional[float] = None,
    location_label: Optional[str] = None,
    time_of_day: Optional[str] = None,
    registry: Optional[HatchRegistry] = None,
) -> List[ActiveHatchInstance]:
    """Expand active hatches into one instance per life stage.

    When `time_of_day` is given only hatches whose optimal times include it are kept.
    """
    tod = time_of_day.strip().lower() if time_of_day else None
    instances: List[ActiveHatchInstance] = []
    for hatch in get_active_hatches(on_date, water_temp_f, location_label, registry):
        if tod and tod not in (t.lower() for t in hatch.optimal_time_of_day):
            continue
        intensity = intensity_for(on_date, hatch)
        for stage in hatch.stages:
            instances.append(
                ActiveHatchInstance(
                    insect=hatch.name,
                    stage=stage,
                    size=hatch.size,
                    intensity=intensity,
                    time_period=", ".join(hatch.optimal_time_of_day),
                    water_temp_range_f=hatch.water_temp_range_f,
                )
            )
    return instances


def describe_hatch(hatch: HatchPattern, on_date: date) -> Dict[str, Any]:
    """Attribute-friendly view of a hatch for a given date."""
    out = hatch.as_dict()
    out["peak"] = is_peak(on_date, hatch)
    out["days_from_peak"] = days_from_peak(on_date, hatch)
    out["intensity"] = intensity_for(on_date, hatch)
    return out


def season_for_date(on_date: date) -> str:
    month = on_date.month
    if month == 12 or month <= 2:
        return "winter"
    if month <= 5:
        return "spring"
    if month <= 8:
        return "summer"
    return "fall"


def time_of_day_for_hour(hour: int) -> str:
    if 5 <= hour < 7:
        return "dawn"
    if 7 <= hour < 11:
        return "morning"
    if 11 <= hour < 14:
        return "midday"
    if 14 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 20:
        return "evening"
    if 20 <= hour < 21:
        return "dusk"
    return "night"


def region_for_coordinates(latitude: Optional[float], longitude: Optional[float]) -> str:
    """Coarse Utah region for a coordinate pair."""
    if latitude is None or longitude is None:
        return "Unknown"
    if latitude > 41.5:
        return "Northern Utah"
    if latitude < 38.0:
        return "Southern Utah"
    if longitude < -112.0:
        return "Western Utah"
    if longitude > -110.5:
        return "Eastern Utah"
    return "Central Utah"


def _months_spanned(hatch: HatchPattern) -> List[str]:
    month = hatch.emergence.start_month
    months = [MONTH_NAMES[month - 1]]
    while month != hatch.emergence.end_month:
        month = month % 12 + 1
        months.append(MONTH_NAMES[month - 1])
    return months


def get_seasonal_hatches(
    location_label: Optional[str] = None,
    registry: Optional[HatchRegistry] = None,
) -> List[Dict[str, Any]]:
    """Season overview for every hatch that applies to the location (all when no label)."""
    registry = registry if registry is not None else get_default_registry()
    label = location_label.strip() if location_label else ""
    out = []
    for hatch in registry.patterns():
        if label and not river_matches(hatch, label):
            continue
        out.append(
            {
                "insect": hatch.name,
                "months": _months_spanned(hatch),
                "peak_months": [MONTH_NAMES[hatch.emergence.peak_month - 1]],
                "typical_sizes": [hatch.size],
                "water_preferences": list(hatch.water_conditions),
            }
        )
    return out


def get_comprehensive_hatch_data(
    location_label: str,
    latitude: Optional[float],
    longitude: Optional[float],
    on_date: date,
    water_temp_f: Optional[float] = None,
    time_of_day: Optional[str] = None,
    registry: Optional[HatchRegistry] = None,
) -> Dict[str, Any]:
    """Active instances, seasonal overview and local summary for a location and date."""
    instances = get_active_hatch_instances(on_date, water_temp_f, location_label, time_of_day, registry)
    season = season_for_date(on_date)
    dominant: List[str] = []
    for inst in instances:
        if inst.insect not in dominant:
            dominant.append(inst.insect)
    return {
        "active_hatches": instances,
        "seasonal_hatches": get_seasonal_hatches(location_label, registry),
        "local_hatch_info": {
            "region": region_for_coordinates(latitude, longitude),
            "river_system": location_label,
            "seasonal_patterns": [
                {
                    "season": season,
                    "dominant_hatches": dominant,
                    "water_conditions": list(SEASON_WATER_CONDITIONS.get(season, ["moderate", "clear"])),
                }
            ],
        },
    }
