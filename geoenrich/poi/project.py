"""
Record Projection

Turns one raw GeoFeature into one canonical NormalizedFeature:

    Normalize -> (proximity) -> DedupCheck -> ResolveFields -> Emit | Skip

Linear, no retries. A feature is skipped when its location cannot be
resolved, when it falls outside the search radius, or when its dedup key
was already emitted in this batch.
"""
import logging
from collections import Counter
from typing import Optional

from ..geo.coordinates import representative_coordinate
from ..geo.proximity import ProximityResolver
from ..model import GeoFeature, NormalizedFeature, QueryOrigin
from .dedup import DeduplicationRegistry
from .fields import AliasConfig, FieldResolver, flatten_attributes
from .providers import resolve_provider_schema

logger = logging.getLogger(__name__)

# Keys the upstream collaborators stash in attribute bags that are not provider data
RESERVED_ATTRIBUTE_KEYS = ("geometry", "distance_miles", "isContaining", "is_containing")


class RecordProjector:
    """
    Orchestrates normalization, proximity, dedup and field resolution.

    The registry is injected so that its lifetime is the caller's export
    call. ``stats`` counts outcomes for the same lifetime.
    """

    def __init__(
        self,
        registry: DeduplicationRegistry,
        proximity: Optional[ProximityResolver] = None,
        alias_config: Optional[AliasConfig] = None,
    ):
        self.registry = registry
        self.proximity = proximity or ProximityResolver()
        self.alias_config = alias_config
        self.stats: Counter = Counter()

    def project(
        self,
        origin: QueryOrigin,
        feature: GeoFeature,
        category_namespace: Optional[str] = None,
        alias_config: Optional[AliasConfig] = None,
    ) -> Optional[NormalizedFeature]:
        """
        Project one feature.

        Args:
            origin: Search center and radius
            feature: Raw provider record
            category_namespace: Overrides ``feature.category_namespace``
            alias_config: Overrides the provider schema's alias tables

        Returns:
            NormalizedFeature, or None when the feature is skipped

        Raises:
            UnknownGeometryKindError: if the feature's geometry kind tag is not recognized
        """
        namespace = category_namespace or feature.category_namespace
        schema = resolve_provider_schema(namespace)
        aliases = alias_config or schema.alias_config(self.alias_config)

        # Normalize
        coordinate = representative_coordinate(
            feature.geometry, feature.geometry_kind, use_centroid=schema.use_centroid
        )
        proximity = self.proximity.locate(
            origin, feature, coordinate, requires_location=schema.requires_location
        )
        if proximity is None:
            measurable = self.proximity.measure(origin, feature.distance_miles, coordinate) is not None
            reason = "out_of_range" if measurable else "unlocated"
            self.stats[reason] += 1
            logger.debug(f"Skipping {namespace} feature ({reason})")
            return None

        # DedupCheck
        key = self.registry.key_for(feature, schema.identity_namespace, alias_config=aliases)
        if not self.registry.check_and_mark(key):
            self.stats["duplicate"] += 1
            logger.debug(f"Skipping duplicate {key}")
            return None

        # ResolveFields
        resolver = FieldResolver(aliases)
        display_name = resolver.resolve_field(
            feature.attributes, "name", fallback=schema.default_name
        )

        self.stats["emitted"] += 1
        return NormalizedFeature(
            dedup_key=key,
            category_namespace=namespace,
            display_name=str(display_name),
            classification=proximity.classification,
            coordinate=coordinate,
            distance_miles=proximity.distance_miles,
            attributes=flatten_attributes(feature.attributes, exclude=RESERVED_ATTRIBUTE_KEYS),
            fields=resolver.resolve_fields(feature.attributes),
            source=schema.source or schema.label,
        )
