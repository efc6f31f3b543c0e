"""
Proximity classification relative to a search origin.

Distances are great-circle (Haversine) in miles, rounded on emission. The
upstream ``is_containing`` flag is authoritative: containment is never
re-derived from a zero distance.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from ..config import DISTANCE_DECIMALS, EARTH_RADIUS_MILES, MAX_RADIUS_MILES
from ..model import Classification, Coordinate, GeoFeature, NormalizedFeature, QueryOrigin, clamp_radius, is_flag_set

logger = logging.getLogger(__name__)

_CLASSIFICATION_RANK = {
    Classification.CONTAINING: 0,
    Classification.NEARBY: 1,
    Classification.UNKNOWN: 2,
}


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in miles between two WGS84 coordinates."""
    lat1, lon1, lat2, lon2 = map(math.radians, [a.lat, a.lon, b.lat, b.lon])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    h = min(max(h, 0.0), 1.0)
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def sort_key(feature: NormalizedFeature):
    distance = feature.distance_miles if feature.distance_miles is not None else math.inf
    return _CLASSIFICATION_RANK[feature.classification], distance


def sort_features(features: Iterable[NormalizedFeature]) -> List[NormalizedFeature]:
    """Containing first, then ascending distance, non-spatial records last."""
    return sorted(features, key=sort_key)


@dataclass(frozen=True)
class Proximity:
    classification: Classification
    distance_miles: Optional[float]


class ProximityResolver:
    """
    Distance measurement and radius filtering.

    Example:
        >>> resolver = ProximityResolver()
        >>> origin = QueryOrigin(42.3601, -71.0589, radius_miles=5)
        >>> resolver.locate(origin, GeoFeature(), Coordinate(42.3611, -71.0600))
        Proximity(classification=<Classification.NEARBY: 'Nearby'>, distance_miles=0.09)
    """

    def __init__(self, max_radius_miles: float = MAX_RADIUS_MILES):
        self.max_radius_miles = max_radius_miles

    def clamp(self, radius_miles: Optional[float]) -> float:
        return clamp_radius(radius_miles, self.max_radius_miles)

    def measure(
        self,
        origin: QueryOrigin,
        upstream_distance: Optional[float],
        coordinate: Optional[Coordinate],
    ) -> Optional[float]:
        """
        Distance in miles (rounded), preferring an upstream value.

        Returns None when neither a usable upstream distance nor a valid
        coordinate is available. Never substitutes zero.
        """
        if upstream_distance is not None:
            try:
                distance = float(upstream_distance)
            except (TypeError, ValueError, OverflowError):
                distance = math.nan
            if math.isfinite(distance) and distance >= 0:
                return round(distance, DISTANCE_DECIMALS)

        if coordinate is None or not coordinate.is_valid:
            return None
        center = origin.coordinate
        if not center.is_valid:
            return None
        return round(haversine_miles(center, coordinate), DISTANCE_DECIMALS)

    def locate(
        self,
        origin: QueryOrigin,
        feature: GeoFeature,
        coordinate: Optional[Coordinate],
        radius_miles: Optional[float] = None,
        requires_location: bool = True,
    ) -> Optional[Proximity]:
        """
        Classify one feature, or return None if it must be dropped.

        Args:
            origin: Search center
            feature: Raw feature (its upstream flags are honored)
            coordinate: Normalized coordinate of the feature, if any
            radius_miles: Override for ``origin.radius_miles`` (clamped)
            requires_location: When False, an unlocatable feature is kept
                as ``Unknown`` instead of being dropped

        Returns:
            Proximity, or None when out of range or unlocatable
        """
        if is_flag_set(feature.is_containing):
            return Proximity(Classification.CONTAINING, 0.0)

        radius = self.clamp(origin.radius_miles if radius_miles is None else radius_miles)
        distance = self.measure(origin, feature.distance_miles, coordinate)
        if distance is None:
            if requires_location:
                return None
            return Proximity(Classification.UNKNOWN, None)
        if distance > radius:
            return None
        return Proximity(Classification.NEARBY, distance)

    def resolve(
        self,
        origin: QueryOrigin,
        candidates: Iterable[NormalizedFeature],
        radius_miles: Optional[float] = None,
    ) -> List[NormalizedFeature]:
        """
        Filter and order a batch of candidate records.

        Containing records are kept at distance 0 regardless of radius.
        Other records are re-measured (their own distance first, else from
        their coordinate) and kept only within the clamped radius. Records
        already marked ``Unknown`` that carry no location are non-spatial by
        configuration and are kept at the end.
        """
        radius = self.clamp(origin.radius_miles if radius_miles is None else radius_miles)
        retained = []
        dropped = 0
        for candidate in candidates:
            if candidate.classification is Classification.CONTAINING:
                retained.append(replace(candidate, distance_miles=0.0))
                continue
            distance = self.measure(origin, candidate.distance_miles, candidate.coordinate)
            if distance is None:
                if candidate.classification is Classification.UNKNOWN:
                    retained.append(candidate)
                else:
                    dropped += 1
                continue
            if distance > radius:
                dropped += 1
                continue
            retained.append(replace(candidate, distance_miles=distance, classification=Classification.NEARBY))

        if dropped:
            logger.debug(f"Proximity filter dropped {dropped} candidates beyond {radius:.2f} mi")
        return sort_features(retained)
