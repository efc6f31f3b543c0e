"""
Core data model for the normalization engine.

Raw provider records come in as ``GeoFeature``; the engine emits
``NormalizedFeature``. Attribute bags stay plain string-keyed dicts, only the
fields the engine actually extracts are narrowed.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .config import DEFAULT_RADIUS_MILES, DISTANCE_DECIMALS, MAX_LAT, MAX_LON, MAX_RADIUS_MILES


class UnknownGeometryKindError(ValueError):
    """Raised when a geometry kind tag is not one the engine understands."""


class GeometryKind(str, Enum):
    POINT = "Point"
    POLYLINE = "Polyline"
    POLYGON = "Polygon"
    MULTIPOINT = "Multipoint"
    NONE = "None"

    @classmethod
    def parse(cls, tag: Any) -> "GeometryKind":
        """
        Resolve a geometry kind tag.

        Accepts the enum itself, its value in any case, the ArcGIS
        ``esriGeometry*`` names, and ``None`` (no geometry).

        Raises:
            UnknownGeometryKindError: for any other tag
        """
        if isinstance(tag, cls):
            return tag
        if tag is None:
            return cls.NONE
        kind = _GEOMETRY_KIND_TAGS.get(str(tag).strip().lower())
        if kind is None:
            raise UnknownGeometryKindError(
                f"Unknown geometry kind: {tag!r}. Available: {[k.value for k in cls]}"
            )
        return kind

    @classmethod
    def infer(cls, geometry: Any) -> "GeometryKind":
        """Guess the kind from the shape of a raw geometry mapping."""
        if not isinstance(geometry, Mapping):
            return cls.NONE
        if "rings" in geometry:
            return cls.POLYGON
        if "paths" in geometry:
            return cls.POLYLINE
        if "points" in geometry:
            return cls.MULTIPOINT
        if ("x" in geometry and "y" in geometry) or ("lat" in geometry and "lon" in geometry) or "center" in geometry:
            return cls.POINT
        return cls.NONE


_GEOMETRY_KIND_TAGS = {
    "point": GeometryKind.POINT,
    "esrigeometrypoint": GeometryKind.POINT,
    "polyline": GeometryKind.POLYLINE,
    "esrigeometrypolyline": GeometryKind.POLYLINE,
    "polygon": GeometryKind.POLYGON,
    "esrigeometrypolygon": GeometryKind.POLYGON,
    "multipoint": GeometryKind.MULTIPOINT,
    "esrigeometrymultipoint": GeometryKind.MULTIPOINT,
    "none": GeometryKind.NONE,
    "null": GeometryKind.NONE,
}


class Classification(str, Enum):
    CONTAINING = "Containing"
    NEARBY = "Nearby"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 latitude/longitude pair in decimal degrees. May carry NaN."""

    lat: float
    lon: float

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lon)
            and -MAX_LAT <= self.lat <= MAX_LAT
            and -MAX_LON <= self.lon <= MAX_LON
        )


def clamp_radius(radius_miles: Optional[float], max_radius: float = MAX_RADIUS_MILES) -> float:
    """Clamp a requested search radius to [0, max_radius]; None means the default radius."""
    if radius_miles is None:
        radius_miles = DEFAULT_RADIUS_MILES
    try:
        radius = float(radius_miles)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if math.isnan(radius):
        return 0.0
    return min(max(radius, 0.0), max_radius)


def is_flag_set(value: Any) -> bool:
    """True only for a boolean True, Python or numpy (pandas predicates return ``np.bool_``)."""
    return isinstance(value, (bool, np.bool_)) and bool(value)


@dataclass(frozen=True)
class QueryOrigin:
    """Search center plus radius. The radius is clamped on construction."""

    lat: float
    lon: float
    radius_miles: float = DEFAULT_RADIUS_MILES

    def __post_init__(self):
        object.__setattr__(self, "radius_miles", clamp_radius(self.radius_miles))

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=float(self.lat), lon=float(self.lon))


@dataclass
class GeoFeature:
    """One raw record from an external geodata query."""

    geometry_kind: Any = GeometryKind.NONE
    geometry: Optional[Dict[str, Any]] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    distance_miles: Optional[float] = None
    is_containing: Optional[bool] = None
    category_namespace: str = ""

    def __post_init__(self):
        if isinstance(self.is_containing, np.bool_):
            self.is_containing = bool(self.is_containing)

    @classmethod
    def from_arcgis(
        cls,
        feature: Mapping[str, Any],
        namespace: str,
        geometry_type: Optional[str] = None,
        distance_miles: Optional[float] = None,
        is_containing: Optional[bool] = None,
    ) -> "GeoFeature":
        """
        Build a feature from an ArcGIS REST ``{attributes, geometry}`` record.

        Args:
            feature: One entry of a FeatureServer ``features`` array
            namespace: Category namespace of the layer
            geometry_type: Layer ``geometryType`` (e.g. ``esriGeometryPolygon``);
                inferred from the geometry shape when omitted
            distance_miles: Upstream distance, if the collaborator computed one
            is_containing: Upstream point-in-polygon result

        Returns:
            GeoFeature
        """
        geometry = feature.get("geometry")
        kind = GeometryKind.parse(geometry_type) if geometry_type else GeometryKind.infer(geometry)
        return cls(
            geometry_kind=kind,
            geometry=dict(geometry) if isinstance(geometry, Mapping) else None,
            attributes=dict(feature.get("attributes") or {}),
            distance_miles=distance_miles,
            is_containing=is_containing,
            category_namespace=namespace,
        )

    @classmethod
    def from_overpass(
        cls,
        element: Mapping[str, Any],
        namespace: str,
        distance_miles: Optional[float] = None,
    ) -> "GeoFeature":
        """
        Build a feature from an OSM Overpass element (``out center tags``).

        Nodes carry ``lat``/``lon``; ways and relations carry ``center``.
        Tags become the attribute bag, with the element reference added as
        ``osm_type``/``osm_id``/``osm_ref``.
        """
        attributes = dict(element.get("tags") or {})
        osm_type = element.get("type")
        osm_id = element.get("id")
        if osm_type is not None and osm_id is not None:
            attributes["osm_type"] = osm_type
            attributes["osm_id"] = osm_id
            attributes["osm_ref"] = f"{osm_type}/{osm_id}"

        geometry = None
        if element.get("lat") is not None and element.get("lon") is not None:
            geometry = {"lat": element["lat"], "lon": element["lon"]}
        elif isinstance(element.get("center"), Mapping):
            geometry = {"center": dict(element["center"])}

        return cls(
            geometry_kind=GeometryKind.POINT if geometry else GeometryKind.NONE,
            geometry=geometry,
            attributes=attributes,
            distance_miles=distance_miles,
            category_namespace=namespace,
        )


@dataclass
class NormalizedFeature:
    """Canonical output record, one per emitted ``GeoFeature``."""

    dedup_key: str
    category_namespace: str
    display_name: str
    classification: Classification
    coordinate: Optional[Coordinate] = None
    distance_miles: Optional[float] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)
    source: str = ""

    @property
    def is_containing(self) -> bool:
        return self.classification is Classification.CONTAINING

    @property
    def distance_display(self) -> str:
        if self.distance_miles is None:
            return f"{0:.{DISTANCE_DECIMALS}f}" if self.is_containing else ""
        return f"{self.distance_miles:.{DISTANCE_DECIMALS}f}"

    def display_attributes(self) -> Dict[str, Any]:
        """Row view for a tabular sink: stable column names, display formatting."""
        row = {
            "category": self.category_namespace,
            "source": self.source,
            "name": self.display_name,
            "lat": self.coordinate.lat if self.coordinate else "",
            "lon": self.coordinate.lon if self.coordinate else "",
            "distance_miles": self.distance_display,
            "containing": "Yes" if self.is_containing else "No",
            "classification": self.classification.value,
        }
        for key, value in self.fields.items():
            row.setdefault(key, value)
        return row

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["classification"] = self.classification.value
        return data
