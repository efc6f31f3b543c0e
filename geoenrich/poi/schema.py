"""
Canonical Feature Schema Definition

Defines the tabular shape NormalizedFeature records take when handed to a
downstream sink (CSV writer, UI table, parquet store).
"""
import geopandas as gpd
import pandas as pd
import pyarrow as pa

# Canonical Data Schema
CANONICAL_FEATURE_SCHEMA = {
    "dedup_key": "str",
    "category": "str",
    "source": "str",
    "name": "str",
    "classification": "str",
    "containing": "str",       # "Yes" / "No"
    "distance_miles": "float64",
    "distance_display": "str",  # exactly 2 decimals, or "" when absent
    "lon": "float64",
    "lat": "float64",
    "geometry": "geometry",
    "h3_r9": "str",
    "fields": "object",         # dict of resolved semantic fields
    "attributes": "object",     # dict of flattened provider attributes
}

# Arrow schema for the same hand-off; dicts travel as JSON strings
FEATURE_ARROW_SCHEMA = pa.schema([
    ("dedup_key", pa.string()),
    ("category", pa.string()),
    ("source", pa.string()),
    ("name", pa.string()),
    ("classification", pa.string()),
    ("containing", pa.string()),
    ("distance_miles", pa.float64()),
    ("distance_display", pa.string()),
    ("lon", pa.float64()),
    ("lat", pa.float64()),
    ("h3_r9", pa.string()),
    ("fields_json", pa.string()),
    ("attributes_json", pa.string()),
])

CLASSIFICATIONS = {"Containing", "Nearby", "Unknown"}


def validate_feature_frame(gdf: gpd.GeoDataFrame) -> bool:
    """
    Validate that a GeoDataFrame conforms to the canonical feature schema.

    Args:
        gdf: GeoDataFrame to validate

    Returns:
        True if valid, raises ValueError otherwise
    """
    missing_cols = set(CANONICAL_FEATURE_SCHEMA.keys()) - set(gdf.columns)
    if missing_cols:
        raise ValueError(f"Missing required columns: {missing_cols}")

    if gdf["dedup_key"].duplicated().any():
        dupes = gdf.loc[gdf["dedup_key"].duplicated(), "dedup_key"].tolist()
        raise ValueError(f"dedup_key must be unique within a batch, duplicates: {dupes[:5]}")

    unknown = set(gdf["classification"].dropna()) - CLASSIFICATIONS
    if unknown:
        raise ValueError(f"Unknown classification values: {unknown}")

    distances = gdf["distance_miles"].dropna()
    if len(distances) and not pd.api.types.is_numeric_dtype(distances):
        raise ValueError("distance_miles must be numeric")
    if (distances < 0).any():
        raise ValueError("distance_miles must be non-negative")

    return True


def create_empty_feature_frame() -> gpd.GeoDataFrame:
    """Create an empty GeoDataFrame with the canonical feature schema."""
    return gpd.GeoDataFrame(
        columns=list(CANONICAL_FEATURE_SCHEMA.keys()),
        geometry='geometry',
        crs="EPSG:4326"
    )
