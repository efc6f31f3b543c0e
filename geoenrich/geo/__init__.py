"""
geoenrich.geo - Coordinate handling and proximity measurement.

Web Mercator inversion, representative coordinates for raw provider
geometries, Haversine distance and radius classification.
"""

from .projection import is_web_mercator, to_wgs84, to_wgs84_array
from .coordinates import centroid, first_vertex, representative_coordinate
from .proximity import Proximity, ProximityResolver, haversine_miles, sort_features
from .containment import annotate_proximity, edge_distance_miles, origin_in_polygon

__all__ = [
    "is_web_mercator",
    "to_wgs84",
    "to_wgs84_array",
    "centroid",
    "first_vertex",
    "representative_coordinate",
    "Proximity",
    "ProximityResolver",
    "haversine_miles",
    "sort_features",
    "annotate_proximity",
    "edge_distance_miles",
    "origin_in_polygon",
]
