"""Unit conversion helper utilities shared across the integration.

All converters attempt to coerce to float and return None on failure.
Canonical units used by the engine:
- live readings: Fahrenheit (°F), miles/hour (mph), cubic feet/second (cfs)
- normalized lure profiles: Celsius (°C) for temperatures, cfs, mph
"""
from typing import Any, Optional
import logging

_LOGGER = logging.getLogger(__name__)

CUBIC_FEET_PER_CUBIC_METER = 35.3146667


def _to_float(v: Any) -> Optional[float]:
    try:
        if v is None:
            return None
        if isinstance(v, bool):
            return None
        f = float(v)
    except (TypeError, ValueError):
        return None
    if f != f:  # NaN
        return None
    return f


# ---- Temperature ----

def f_to_c(v: Any) -> Optional[float]:
    """Convert Fahrenheit to Celsius."""
    f = _to_float(v)
    if f is None:
        return None
    return (f - 32.0) * (5.0 / 9.0)


def f_to_c_rounded(v: Any) -> Optional[float]:
    """Convert Fahrenheit to Celsius rounded to one decimal (profile storage precision)."""
    c = f_to_c(v)
    if c is None:
        return None
    return round(c, 1)


def c_to_f(v: Any) -> Optional[float]:
    f = _to_float(v)
    if f is None:
        return None
    return (f * 9.0 / 5.0) + 32.0


# ---- Wind speed ----

def m_s_to_mph(v: Any) -> Optional[float]:
    f = _to_float(v)
    if f is None:
        return None
    return f * 2.2369362920544


def kmh_to_mph(v: Any) -> Optional[float]:
    f = _to_float(v)
    if f is None:
        return None
    return f / 1.609344


def knots_to_mph(v: Any) -> Optional[float]:
    f = _to_float(v)
    if f is None:
        return None
    return f * 1.150779448


# ---- Stream flow ----

def cms_to_cfs(v: Any) -> Optional[float]:
    """Convert cubic meters/second to cubic feet/second."""
    f = _to_float(v)
    if f is None:
        return None
    return f * CUBIC_FEET_PER_CUBIC_METER


# ---- Unit-string aware helpers used when reading Home Assistant states ----

_TEMP_F_UNITS = ("°f", "f", "fahrenheit")
_TEMP_C_UNITS = ("°c", "c", "celsius")


def temperature_to_f(value: Any, unit: Optional[str]) -> Optional[float]:
    """Return temperature in °F given a value and its unit string (defaults to °F)."""
    f = _to_float(value)
    if f is None:
        return None
    u = (unit or "°F").strip().lower()
    if u in _TEMP_F_UNITS:
        return f
    if u in _TEMP_C_UNITS:
        return c_to_f(f)
    if u in ("k", "kelvin"):
        return c_to_f(f - 273.15)
    _LOGGER.debug("Unknown temperature unit %r; assuming °F", unit)
    return f


def wind_to_mph(value: Any, unit: Optional[str]) -> Optional[float]:
    """Return wind speed in mph given a value and its unit string (defaults to mph)."""
    f = _to_float(value)
    if f is None:
        return None
    u = (unit or "mph").strip().lower()
    if u == "mph":
        return f
    if u in ("km/h", "kmh", "kph"):
        return kmh_to_mph(f)
    if u == "m/s":
        return m_s_to_mph(f)
    if u in ("kn", "kt", "knots"):
        return knots_to_mph(f)
    _LOGGER.debug("Unknown wind unit %r; assuming mph", unit)
    return f


def flow_to_cfs(value: Any, unit: Optional[str]) -> Optional[float]:
    """Return stream flow in cfs given a value and its unit string (defaults to cfs)."""
    f = _to_float(value)
    if f is None:
        return None
    u = (unit or "ft³/s").strip().lower()
    if u in ("ft³/s", "ft3/s", "cfs"):
        return f
    if u in ("m³/s", "m3/s", "cms"):
        return cms_to_cfs(f)
    _LOGGER.debug("Unknown flow unit %r; assuming cfs", unit)
    return f
