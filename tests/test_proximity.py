"""
Tests for distance measurement, radius filtering and ordering.
"""
import math

import numpy as np
import pytest

from geoenrich.geo.proximity import Proximity, ProximityResolver, haversine_miles, sort_features
from geoenrich.model import (
    Classification,
    Coordinate,
    GeoFeature,
    GeometryKind,
    NormalizedFeature,
    QueryOrigin,
    clamp_radius,
)


def _record(key, classification, distance=None, coordinate=None):
    return NormalizedFeature(
        dedup_key=key,
        category_namespace="test",
        display_name=key,
        classification=classification,
        coordinate=coordinate,
        distance_miles=distance,
    )


class TestHaversine:
    """Great-circle distance."""

    def test_zero_distance(self):
        c = Coordinate(lat=42.3601, lon=-71.0589)
        assert haversine_miles(c, c) == 0.0

    def test_one_degree_latitude(self):
        """One degree of latitude is about 69.09 miles on a 3958.8 mile sphere."""
        d = haversine_miles(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
        assert d == pytest.approx(69.094, abs=1e-3)

    def test_symmetric(self):
        a = Coordinate(42.3601, -71.0589)
        b = Coordinate(40.7128, -74.0060)
        assert haversine_miles(a, b) == pytest.approx(haversine_miles(b, a))

    def test_antipodal_does_not_raise(self):
        """Floating point drift past h=1 is clamped."""
        d = haversine_miles(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
        assert d == pytest.approx(math.pi * 3958.8)


class TestClamp:
    """Search radius clamping."""

    @pytest.mark.parametrize("requested,expected", [
        (5, 5.0),
        (50, 25.0),
        (25, 25.0),
        (-3, 0.0),
        (0, 0.0),
        ("7.5", 7.5),
        (math.nan, 0.0),
        ("wide", 0.0),
        (None, 5.0),
    ])
    def test_clamp_radius(self, requested, expected):
        assert clamp_radius(requested) == expected

    def test_query_origin_clamps_on_construction(self):
        assert QueryOrigin(42.0, -71.0, radius_miles=50).radius_miles == 25.0
        assert QueryOrigin(42.0, -71.0, radius_miles=-1).radius_miles == 0.0

    def test_resolver_cap(self):
        assert ProximityResolver(max_radius_miles=10).clamp(50) == 10


class TestLocate:
    """Single-feature classification."""

    def test_scenario_nearby_point(self, boston_origin, nearby_point_feature):
        """A point a tenth of a mile away is kept as Nearby at 0.09 mi."""
        resolver = ProximityResolver()
        result = resolver.locate(boston_origin, nearby_point_feature, Coordinate(42.3611, -71.0600))

        assert result == Proximity(Classification.NEARBY, 0.09)

    def test_scenario_clamped_radius_drops_far_feature(self):
        """A 50 mile request is clamped to 25, so a feature ~44 mi away is dropped."""
        origin = QueryOrigin(42.3601, -71.0589, radius_miles=50)
        feature = GeoFeature(geometry_kind=GeometryKind.POINT, geometry={"x": -71.0, "y": 43.0})
        resolver = ProximityResolver()

        assert resolver.measure(origin, None, Coordinate(43.0, -71.0)) == pytest.approx(44.2, abs=0.2)
        assert resolver.locate(origin, feature, Coordinate(43.0, -71.0)) is None

    def test_scenario_containing_ignores_radius(self, containing_polygon_feature):
        """Upstream containment wins even with a zero radius and no distance."""
        origin = QueryOrigin(42.3601, -71.0589, radius_miles=0)
        result = ProximityResolver().locate(origin, containing_polygon_feature, None)

        assert result == Proximity(Classification.CONTAINING, 0.0)

    def test_numpy_containing_flag(self, boston_origin):
        """Flags produced by pandas predicates (np.bool_) count as containing."""
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON)
        feature.is_containing = np.bool_(True)
        result = ProximityResolver().locate(boston_origin, feature, None)

        assert result == Proximity(Classification.CONTAINING, 0.0)

    def test_truthy_non_bool_flag_is_not_containing(self, boston_origin):
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON, is_containing="yes")
        assert ProximityResolver().locate(boston_origin, feature, None) is None

    def test_zero_distance_without_flag_is_nearby(self, boston_origin):
        """Containment is never inferred from a zero distance."""
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON, distance_miles=0.0)
        result = ProximityResolver().locate(boston_origin, feature, None)

        assert result == Proximity(Classification.NEARBY, 0.0)

    def test_upstream_distance_preferred(self, boston_origin):
        """A usable upstream distance is used instead of the vertex distance."""
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON, distance_miles=1.234)
        result = ProximityResolver().locate(boston_origin, feature, Coordinate(42.5, -71.0589))

        assert result.distance_miles == 1.23

    @pytest.mark.parametrize("bad", [-1.0, math.nan, math.inf, "far", 10 ** 400])
    def test_unusable_upstream_distance_falls_back(self, boston_origin, nearby_point_feature, bad):
        nearby_point_feature.distance_miles = bad
        result = ProximityResolver().locate(boston_origin, nearby_point_feature, Coordinate(42.3611, -71.0600))

        assert result.distance_miles == 0.09

    def test_unlocatable_dropped(self, boston_origin, nearby_point_feature):
        """No coordinate and no distance means no proximity; zero is never substituted."""
        assert ProximityResolver().locate(boston_origin, nearby_point_feature, None) is None

    def test_unlocatable_kept_as_unknown_when_location_optional(self, boston_origin):
        feature = GeoFeature(geometry_kind=GeometryKind.NONE)
        result = ProximityResolver().locate(boston_origin, feature, None, requires_location=False)

        assert result == Proximity(Classification.UNKNOWN, None)

    def test_boundary_uses_rounded_distance(self, boston_origin):
        """Distance is rounded before the radius comparison, so 5.004 fits a 5 mile radius."""
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON, distance_miles=5.004)
        result = ProximityResolver().locate(boston_origin, feature, None)

        assert result == Proximity(Classification.NEARBY, 5.0)

    def test_radius_override(self, boston_origin):
        feature = GeoFeature(geometry_kind=GeometryKind.POLYGON, distance_miles=3.0)
        assert ProximityResolver().locate(boston_origin, feature, None, radius_miles=2) is None

    def test_invalid_origin_cannot_measure(self, nearby_point_feature):
        origin = QueryOrigin(math.nan, -71.0, radius_miles=5)
        assert ProximityResolver().locate(origin, nearby_point_feature, Coordinate(42.0, -71.0)) is None


class TestResolve:
    """Batch filtering and ordering."""

    def test_filters_and_orders(self, boston_origin):
        """Containing first, then ascending distance; out-of-range and unlocated records go."""
        candidates = [
            _record("far", Classification.NEARBY, distance=12.0),
            _record("close", Classification.NEARBY, coordinate=Coordinate(42.3611, -71.0600)),
            _record("mid", Classification.NEARBY, distance=2.5),
            _record("tract", Classification.CONTAINING, distance=None),
            _record("lost", Classification.NEARBY),
            _record("species", Classification.UNKNOWN),
        ]
        resolved = ProximityResolver().resolve(boston_origin, candidates)

        assert [r.dedup_key for r in resolved] == ["tract", "close", "mid", "species"]
        assert resolved[0].distance_miles == 0.0
        assert resolved[1].distance_miles == 0.09
        assert resolved[1].classification is Classification.NEARBY

    def test_all_retained_within_radius(self, boston_origin):
        candidates = [_record(f"r{i}", Classification.NEARBY, distance=float(i)) for i in range(10)]
        resolved = ProximityResolver().resolve(boston_origin, candidates)

        assert all(r.distance_miles <= boston_origin.radius_miles for r in resolved)
        assert len(resolved) == 6

    def test_empty(self, boston_origin):
        assert ProximityResolver().resolve(boston_origin, []) == []


class TestSortFeatures:
    """Output ordering."""

    def test_containing_before_closer_nearby(self):
        records = [
            _record("n", Classification.NEARBY, distance=0.0),
            _record("c", Classification.CONTAINING, distance=None),
        ]
        assert [r.dedup_key for r in sort_features(records)] == ["c", "n"]

    def test_stable_for_ties(self):
        records = [_record(k, Classification.NEARBY, distance=1.0) for k in "abc"]
        assert [r.dedup_key for r in sort_features(records)] == ["a", "b", "c"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
