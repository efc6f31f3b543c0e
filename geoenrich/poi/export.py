"""
Batch export of projected features.

Features are pulled through the projector lazily so a batch of tens of
thousands of provider records never materializes intermediates; only the
retained records are collected (they have to be sorted).
"""
import json
import logging
from typing import Iterable, Iterator, List, Optional

import geopandas as gpd
import h3
import pyarrow as pa
from shapely.geometry import Point

from ..config import H3_RES
from ..geo.proximity import ProximityResolver, sort_features
from ..model import GeoFeature, NormalizedFeature, QueryOrigin
from .dedup import DeduplicationRegistry
from .fields import AliasConfig
from .project import RecordProjector
from .schema import CANONICAL_FEATURE_SCHEMA, FEATURE_ARROW_SCHEMA, create_empty_feature_frame

logger = logging.getLogger(__name__)


def iter_projected(
    origin: QueryOrigin,
    features: Iterable[GeoFeature],
    projector: Optional[RecordProjector] = None,
) -> Iterator[NormalizedFeature]:
    """Yield the emitted record for each feature, skipping dropped ones."""
    if projector is None:
        projector = RecordProjector(DeduplicationRegistry())
    for feature in features:
        record = projector.project(origin, feature)
        if record is not None:
            yield record


def export_features(
    origin: QueryOrigin,
    features: Iterable[GeoFeature],
    alias_config: Optional[AliasConfig] = None,
    proximity: Optional[ProximityResolver] = None,
) -> List[NormalizedFeature]:
    """
    Normalize, filter and deduplicate one batch for one origin.

    A fresh DeduplicationRegistry is created for every call, so concurrent
    callers never share identity state.

    Args:
        origin: Search center and radius
        features: Raw features from any number of provider layers
        alias_config: Base alias tables (provider overrides still apply)
        proximity: Resolver to use; defaults to the 25 mile cap

    Returns:
        Records ordered Containing first, then by ascending distance
    """
    registry = DeduplicationRegistry(alias_config)
    projector = RecordProjector(registry, proximity=proximity, alias_config=alias_config)
    records = sort_features(iter_projected(origin, features, projector))

    stats = projector.stats
    logger.info(
        f"Exported {len(records)} features for ({origin.lat:.4f}, {origin.lon:.4f}) "
        f"r={origin.radius_miles:.2f} mi | duplicate={stats['duplicate']} "
        f"out_of_range={stats['out_of_range']} unlocated={stats['unlocated']}"
    )
    return records


def _h3_cell(record: NormalizedFeature) -> Optional[str]:
    if record.coordinate is None:
        return None
    return h3.latlng_to_cell(record.coordinate.lat, record.coordinate.lon, H3_RES)


def _row(record: NormalizedFeature) -> dict:
    coord = record.coordinate
    return {
        "dedup_key": record.dedup_key,
        "category": record.category_namespace,
        "source": record.source,
        "name": record.display_name,
        "classification": record.classification.value,
        "containing": "Yes" if record.is_containing else "No",
        "distance_miles": record.distance_miles,
        "distance_display": record.distance_display,
        "lon": coord.lon if coord else None,
        "lat": coord.lat if coord else None,
        "h3_r9": _h3_cell(record),
        "fields": record.fields,
        "attributes": record.attributes,
    }


def features_to_frame(records: Iterable[NormalizedFeature]) -> gpd.GeoDataFrame:
    """
    Tabular view of exported records in the canonical feature schema.

    Args:
        records: NormalizedFeature records (already ordered)

    Returns:
        GeoDataFrame with point geometry in EPSG:4326
    """
    rows = []
    for record in records:
        row = _row(record)
        row["geometry"] = Point(row["lon"], row["lat"]) if record.coordinate else None
        rows.append(row)

    if not rows:
        return create_empty_feature_frame()

    gdf = gpd.GeoDataFrame(rows, geometry="geometry", crs="EPSG:4326")
    return gdf[list(CANONICAL_FEATURE_SCHEMA.keys())]


def features_to_arrow(records: Iterable[NormalizedFeature]) -> pa.Table:
    """Arrow table of exported records; dict columns are JSON-encoded."""
    rows = []
    for record in records:
        row = _row(record)
        row["fields_json"] = json.dumps(row.pop("fields"), sort_keys=True)
        row["attributes_json"] = json.dumps(row.pop("attributes"), sort_keys=True)
        rows.append(row)
    return pa.Table.from_pylist(rows, schema=FEATURE_ARROW_SCHEMA)
