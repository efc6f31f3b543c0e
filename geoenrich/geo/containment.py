"""
Point-in-polygon and nearest-edge distance for upstream collaborators.

Provider clients compute ``is_containing`` / ``distance_miles`` before
handing features to the engine. These helpers do that step on shapely for
ArcGIS-encoded geometries. The engine itself never calls them: whatever
flags the collaborator supplies are authoritative.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, List, Optional

import numpy as np
import shapely
from shapely.geometry import LineString, MultiLineString, MultiPoint, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import nearest_points

from ..config import DISTANCE_DECIMALS
from ..model import Coordinate, GeoFeature, GeometryKind, QueryOrigin
from .coordinates import first_vertex, vertex_arrays
from .proximity import haversine_miles


def _ring_polygons(geometry: Any) -> List[Polygon]:
    polygons = []
    for ring in vertex_arrays(geometry, "rings"):
        if len(np.unique(ring, axis=0)) < 3:
            continue
        polygon = Polygon(ring)
        polygons.append(polygon if polygon.is_valid else shapely.make_valid(polygon))
    return polygons


def origin_in_polygon(origin: QueryOrigin, geometry: Any) -> bool:
    """
    True when the origin falls inside an ArcGIS ``rings`` polygon.

    Rings combine even-odd, so holes and multipart polygons work without
    relying on ring orientation.
    """
    point = Point(origin.lon, origin.lat)
    hits = sum(1 for polygon in _ring_polygons(geometry) if polygon.covers(point))
    return hits % 2 == 1


def _edge_geometry(geometry: Any) -> Optional[BaseGeometry]:
    rings = [r for r in vertex_arrays(geometry, "rings") if len(r) >= 2]
    if rings:
        return MultiLineString([LineString(r) for r in rings])
    paths = [p for p in vertex_arrays(geometry, "paths") if len(p) >= 2]
    if paths:
        return MultiLineString([LineString(p) for p in paths])
    points = vertex_arrays(geometry, "points")
    if points:
        return MultiPoint(points[0])
    return None


def edge_distance_miles(origin: QueryOrigin, geometry: Any) -> Optional[float]:
    """
    Distance from the origin to the nearest part of a geometry, in miles.

    Zero when a polygon contains the origin. The nearest point is found in
    lon/lat space and then measured with Haversine.

    Returns:
        Rounded distance, or None when the geometry cannot be resolved
    """
    if origin_in_polygon(origin, geometry):
        return 0.0

    edges = _edge_geometry(geometry)
    if edges is None:
        target = first_vertex(geometry)
    else:
        _, nearest = nearest_points(Point(origin.lon, origin.lat), edges)
        target = Coordinate(lat=nearest.y, lon=nearest.x)

    if target is None or not target.is_valid:
        return None
    return round(haversine_miles(origin.coordinate, target), DISTANCE_DECIMALS)


def annotate_proximity(origin: QueryOrigin, feature: GeoFeature) -> GeoFeature:
    """
    Copy of ``feature`` with missing upstream proximity fields filled in.

    Flags already present are left untouched. Containment is only tested
    for polygon features.
    """
    kind = GeometryKind.parse(feature.geometry_kind)
    is_containing = feature.is_containing
    if is_containing is None and kind is GeometryKind.POLYGON:
        is_containing = origin_in_polygon(origin, feature.geometry)

    distance = feature.distance_miles
    if distance is None and kind is not GeometryKind.NONE:
        distance = edge_distance_miles(origin, feature.geometry)

    return replace(feature, is_containing=is_containing, distance_miles=distance)
