"""
Web Mercator (EPSG:3857) to WGS84 (EPSG:4326) conversion.

Providers emit either system without a CRS marker, so a pair is treated as
Mercator when it falls outside the valid lon/lat range. Conversion is total:
invalid input propagates as NaN and callers bounds-check the result.
"""
from __future__ import annotations

import math
from typing import Any

import numpy as np

from ..config import MAX_LAT, MAX_LON, WEB_MERCATOR_HALF_WORLD
from ..model import Coordinate


def as_float(value: Any) -> float:
    """Coerce a raw coordinate component to float; anything non-numeric becomes NaN."""
    if isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def is_web_mercator(x: float, y: float) -> bool:
    return abs(x) > MAX_LON or abs(y) > MAX_LAT


def _inverse_mercator(x, y):
    lon = (x / WEB_MERCATOR_HALF_WORLD) * 180.0
    merc_lat = (y / WEB_MERCATOR_HALF_WORLD) * 180.0
    # exp() overflows to inf for garbage input; atan(inf) then lands on the pole
    with np.errstate(over="ignore", invalid="ignore"):
        lat = 180.0 / np.pi * (2.0 * np.arctan(np.exp(merc_lat * np.pi / 180.0)) - np.pi / 2.0)
    return lat, lon


def to_wgs84(x: Any, y: Any) -> Coordinate:
    """
    Convert an (x, y) pair to a WGS84 coordinate.

    Pairs already inside WGS84 bounds are returned unchanged.

    Args:
        x: Easting or longitude
        y: Northing or latitude

    Returns:
        Coordinate (possibly NaN; never raises)
    """
    x, y = as_float(x), as_float(y)
    if not is_web_mercator(x, y):
        return Coordinate(lat=y, lon=x)
    lat, lon = _inverse_mercator(np.float64(x), np.float64(y))
    return Coordinate(lat=float(lat), lon=float(lon))


def to_wgs84_array(xy: np.ndarray) -> np.ndarray:
    """
    Vectorized ``to_wgs84`` over an (n, 2) array of x/y pairs.

    Detection is per row, so mixed input is handled vertex by vertex.

    Returns:
        (n, 2) float array of lat/lon rows
    """
    xy = np.asarray(xy, dtype=float).reshape(-1, 2)
    x, y = xy[:, 0], xy[:, 1]
    merc = (np.abs(x) > MAX_LON) | (np.abs(y) > MAX_LAT)
    lat, lon = _inverse_mercator(x, y)
    out = np.empty_like(xy)
    out[:, 0] = np.where(merc, lat, y)
    out[:, 1] = np.where(merc, lon, x)
    return out
