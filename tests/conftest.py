"""
Pytest configuration and shared fixtures.
"""
import math

import pytest

from geoenrich.config import WEB_MERCATOR_HALF_WORLD
from geoenrich.model import GeoFeature, GeometryKind, QueryOrigin

BOSTON = (42.3601, -71.0589)


def to_mercator(lat: float, lon: float) -> tuple:
    """Forward EPSG:3857 projection, used to build Mercator fixtures."""
    x = lon / 180.0 * WEB_MERCATOR_HALF_WORLD
    y = math.log(math.tan(math.pi / 4 + math.radians(lat) / 2)) * WEB_MERCATOR_HALF_WORLD / math.pi
    return x, y


@pytest.fixture
def boston_origin() -> QueryOrigin:
    """Downtown Boston with a 5 mile radius."""
    return QueryOrigin(lat=BOSTON[0], lon=BOSTON[1], radius_miles=5)


@pytest.fixture
def nearby_point_feature() -> GeoFeature:
    """Point about 0.09 miles from downtown Boston."""
    return GeoFeature(
        geometry_kind=GeometryKind.POINT,
        geometry={"x": -71.0600, "y": 42.3611},
        attributes={"OBJECTID": 7, "NAME": "Old State House", "PHONE": "617-555-0100"},
        category_namespace="boston_landmarks",
    )


@pytest.fixture
def containing_polygon_feature() -> GeoFeature:
    """Census tract polygon reported as containing the origin by the upstream client."""
    return GeoFeature(
        geometry_kind="esriGeometryPolygon",
        geometry={"rings": [[[-71.1, 42.3], [-71.0, 42.3], [-71.0, 42.4], [-71.1, 42.4], [-71.1, 42.3]]]},
        attributes={"GEOID": "25025030300", "NAMELSAD": "Census Tract 303"},
        is_containing=True,
        category_namespace="acs_tracts",
    )


@pytest.fixture
def boston_square_rings() -> list:
    """Square ring (x/y = lon/lat) around downtown Boston."""
    return [[[-71.1, 42.3], [-71.0, 42.3], [-71.0, 42.4], [-71.1, 42.4], [-71.1, 42.3]]]
