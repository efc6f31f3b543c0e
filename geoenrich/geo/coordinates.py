"""
Representative coordinates for raw provider geometries.

Supported encodings:
- ``{x, y}``                      point (ArcGIS)
- ``{lat, lon}`` / ``{center}``   point (Overpass node / way center)
- ``{paths: [[[x, y], ...]]}``    polyline
- ``{rings: [[[x, y], ...]]}``    polygon
- ``{points: [[x, y], ...]}``     multipoint

Every vertex goes through the Mercator check before use. ``first_vertex``
and ``centroid`` never raise; anything empty, malformed, non-finite or out
of bounds yields ``None``.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..config import MAX_LAT, MAX_LON
from ..model import Coordinate, GeometryKind
from .projection import as_float, to_wgs84, to_wgs84_array

_MULTI_VERTEX_KEYS = ("paths", "rings")


def _non_empty_seq(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def _pair(vertex: Any) -> Optional[Tuple[float, float]]:
    # Extra ordinates (z, m) are ignored
    if not isinstance(vertex, (list, tuple)) or len(vertex) < 2:
        return None
    return as_float(vertex[0]), as_float(vertex[1])


def _point_xy(geometry: Mapping[str, Any]) -> Optional[Tuple[float, float]]:
    if "x" in geometry and "y" in geometry:
        return as_float(geometry["x"]), as_float(geometry["y"])
    if "lat" in geometry and "lon" in geometry:
        return as_float(geometry["lon"]), as_float(geometry["lat"])
    center = geometry.get("center")
    if isinstance(center, Mapping) and "lat" in center and "lon" in center:
        return as_float(center["lon"]), as_float(center["lat"])
    return None


def _checked(xy: Optional[Tuple[float, float]]) -> Optional[Coordinate]:
    if xy is None:
        return None
    coord = to_wgs84(*xy)
    return coord if coord.is_valid else None


def _all_in_bounds(latlon: np.ndarray) -> bool:
    return bool(
        np.isfinite(latlon).all()
        and (np.abs(latlon[:, 0]) <= MAX_LAT).all()
        and (np.abs(latlon[:, 1]) <= MAX_LON).all()
    )


def _all_vertices(geometry: Mapping[str, Any]) -> Optional[List[Any]]:
    for key in _MULTI_VERTEX_KEYS:
        if key in geometry:
            parts = geometry[key]
            if not _non_empty_seq(parts) or not all(isinstance(p, (list, tuple)) for p in parts):
                return None
            return [vertex for part in parts for vertex in part]
    if "points" in geometry:
        points = geometry["points"]
        return list(points) if isinstance(points, (list, tuple)) else None
    return None


def first_vertex(geometry: Any) -> Optional[Coordinate]:
    """
    Representative coordinate using the legacy display convention.

    Points map directly; polylines/polygons use the first vertex of the
    first path/ring; multipoints use the first point.
    """
    if not isinstance(geometry, Mapping):
        return None

    point = _point_xy(geometry)
    if point is not None:
        return _checked(point)

    for key in _MULTI_VERTEX_KEYS:
        if key in geometry:
            parts = geometry[key]
            first = parts[0] if _non_empty_seq(parts) else None
            return _checked(_pair(first[0])) if _non_empty_seq(first) else None

    if "points" in geometry:
        points = geometry["points"]
        return _checked(_pair(points[0])) if _non_empty_seq(points) else None

    return None


def centroid(geometry: Any) -> Optional[Coordinate]:
    """
    Arithmetic mean of all vertices (all paths/rings, or all points).

    A single malformed or non-finite vertex makes the whole geometry
    unresolvable. Points resolve exactly as in ``first_vertex``.
    """
    if not isinstance(geometry, Mapping):
        return None

    point = _point_xy(geometry)
    if point is not None:
        return _checked(point)

    vertices = _all_vertices(geometry)
    if not vertices:
        return None
    pairs = [_pair(v) for v in vertices]
    if any(p is None for p in pairs):
        return None

    latlon = to_wgs84_array(np.array(pairs, dtype=float))
    if not _all_in_bounds(latlon):
        return None
    lat, lon = latlon.mean(axis=0)
    coord = Coordinate(lat=float(lat), lon=float(lon))
    return coord if coord.is_valid else None


def representative_coordinate(
    geometry: Any,
    kind: Any,
    use_centroid: bool = False,
) -> Optional[Coordinate]:
    """
    Resolve a feature geometry to one coordinate.

    Args:
        geometry: Raw geometry mapping (or None)
        kind: Geometry kind tag; parsed with ``GeometryKind.parse``
        use_centroid: Average all vertices of polylines/polygons/multipoints
            instead of taking the first one

    Returns:
        Coordinate, or None when the geometry cannot be resolved

    Raises:
        UnknownGeometryKindError: if ``kind`` is not a recognized tag
    """
    kind = GeometryKind.parse(kind)
    if kind is GeometryKind.NONE:
        return None
    if use_centroid and kind is not GeometryKind.POINT:
        return centroid(geometry)
    return first_vertex(geometry)


def vertex_arrays(geometry: Any, key: str) -> List[np.ndarray]:
    """
    WGS84 vertex arrays (lon, lat columns) for every part under ``key``.

    Parts with malformed or non-finite vertices are skipped.
    """
    if not isinstance(geometry, Mapping) or not _non_empty_seq(geometry.get(key)):
        return []
    parts: Sequence[Any] = geometry[key] if key != "points" else [geometry[key]]
    arrays = []
    for part in parts:
        if not _non_empty_seq(part):
            continue
        pairs = [_pair(v) for v in part]
        if any(p is None for p in pairs):
            continue
        latlon = to_wgs84_array(np.array(pairs, dtype=float))
        if not _all_in_bounds(latlon):
            continue
        arrays.append(latlon[:, ::-1])
    return arrays
