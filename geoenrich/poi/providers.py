#!/usr/bin/env python3
"""
geoenrich provider schemas: declarative description of each provider layer.

Each schema has:
- namespace: category namespace tagged on the layer's features
- geometry_kind: geometry the layer returns
- label / source: human-readable layer name and publisher
- field_aliases: provider-specific keys, tried before the shared alias lists
- dedup_namespace: identity scope; vintages of one dataset share it
- use_centroid: average all vertices instead of the first one
- requires_location: False for non-spatial summary layers
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..model import GeometryKind
from .fields import DEFAULT_ALIASES, AliasConfig


@dataclass
class ProviderSchema:
    namespace: str
    geometry_kind: GeometryKind = GeometryKind.POINT
    label: str = ""
    source: str = ""
    field_aliases: Dict[str, List[str]] = field(default_factory=dict)
    dedup_namespace: Optional[str] = None
    use_centroid: bool = False
    requires_location: bool = True
    default_name: str = "Unknown"

    @property
    def identity_namespace(self) -> str:
        return self.dedup_namespace or self.namespace

    def alias_config(self, base: Optional[AliasConfig] = None) -> AliasConfig:
        return (base or DEFAULT_ALIASES).merged_with(self.field_aliases)


# Provider registry
PROVIDER_SCHEMAS: Dict[str, ProviderSchema] = {
    "osm_poi": ProviderSchema(
        namespace="osm_poi",
        geometry_kind=GeometryKind.POINT,
        label="OpenStreetMap POI",
        source="OpenStreetMap",
        field_aliases={"name": ["name", "brand", "operator"], "phone": ["phone", "contact:phone"]},
    ),
    "nh_parcels": ProviderSchema(
        namespace="nh_parcels",
        geometry_kind=GeometryKind.POLYGON,
        label="NH Parcels",
        source="NH GRANIT",
        field_aliases={"name": ["parcelId", "PARCELID", "parcelid"]},
        default_name="Unknown Parcel",
    ),
    "ct_broadband_availability": ProviderSchema(
        namespace="ct_broadband_availability",
        geometry_kind=GeometryKind.POLYGON,
        label="CT Broadband Availability",
        source="CT Geodata Portal",
        field_aliases={"name": ["blockName", "block_name", "BLOCK_NAME"]},
        default_name="Unknown Block",
    ),
    "nh_recreation_trails": ProviderSchema(
        namespace="nh_recreation_trails",
        geometry_kind=GeometryKind.POLYLINE,
        label="NH Recreation Trails",
        source="NH GRANIT",
        field_aliases={"name": ["TRAILNAME", "trail_name"]},
        use_centroid=True,
    ),
    "nri_hurricane_tracts_2020": ProviderSchema(
        namespace="nri_hurricane_tracts_2020",
        geometry_kind=GeometryKind.POLYGON,
        label="NRI Hurricane Annualized Frequency (2020)",
        source="FEMA National Risk Index",
        dedup_namespace="nri_hurricane_tracts",
    ),
    "nri_hurricane_tracts_2023": ProviderSchema(
        namespace="nri_hurricane_tracts_2023",
        geometry_kind=GeometryKind.POLYGON,
        label="NRI Hurricane Annualized Frequency (2023)",
        source="FEMA National Risk Index",
        dedup_namespace="nri_hurricane_tracts",
    ),
    "usgs_earthquakes": ProviderSchema(
        namespace="usgs_earthquakes",
        geometry_kind=GeometryKind.POINT,
        label="Historical Earthquakes",
        source="USGS",
        field_aliases={"name": ["place", "title"]},
    ),
    "fws_species": ProviderSchema(
        namespace="fws_species",
        geometry_kind=GeometryKind.NONE,
        label="FWS Species & Critical Habitat",
        source="FWS API",
        field_aliases={"name": ["comname", "sciname"]},
        requires_location=False,
    ),
}


def register_provider_schema(schema: ProviderSchema) -> ProviderSchema:
    """Add a schema to the registry; namespaces must be unique."""
    if schema.namespace in PROVIDER_SCHEMAS:
        raise ValueError(f"Provider namespace already registered: {schema.namespace}")
    PROVIDER_SCHEMAS[schema.namespace] = schema
    return schema


def get_provider_schema(namespace: str) -> ProviderSchema:
    """Get schema by namespace, raise if not found."""
    if namespace not in PROVIDER_SCHEMAS:
        raise ValueError(f"Unknown provider namespace: {namespace}. Available: {list(PROVIDER_SCHEMAS.keys())}")
    return PROVIDER_SCHEMAS[namespace]


def resolve_provider_schema(namespace: str) -> ProviderSchema:
    """Registered schema for ``namespace``, or a generic one for unregistered layers."""
    return PROVIDER_SCHEMAS.get(namespace) or ProviderSchema(namespace=namespace)


def list_provider_schemas() -> Dict[str, ProviderSchema]:
    """Return all registered schemas."""
    return dict(PROVIDER_SCHEMAS)
