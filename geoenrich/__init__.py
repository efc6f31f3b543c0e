"""
geoenrich - Geospatial feature normalization and proximity resolution.

Takes raw records from heterogeneous geodata providers, resolves each to a
WGS84 coordinate, classifies it against a search origin, drops duplicates
seen through several layers, and emits canonical rows.
"""

from .model import (
    Classification,
    Coordinate,
    GeoFeature,
    GeometryKind,
    NormalizedFeature,
    QueryOrigin,
    UnknownGeometryKindError,
)
from .poi import DeduplicationRegistry, FieldResolver, RecordProjector, export_features
from .geo import ProximityResolver

__all__ = [
    "Classification",
    "Coordinate",
    "GeoFeature",
    "GeometryKind",
    "NormalizedFeature",
    "QueryOrigin",
    "UnknownGeometryKindError",
    "DeduplicationRegistry",
    "FieldResolver",
    "RecordProjector",
    "ProximityResolver",
    "export_features",
]
