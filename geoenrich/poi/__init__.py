"""
geoenrich.poi - Feature projection, deduplication, and export.

This module turns raw provider records into canonical NormalizedFeature
rows: field resolution through shared alias tables, per-batch identity
tracking, and the tabular hand-off to downstream sinks.
"""

from .fields import AliasConfig, FieldResolver, DEFAULT_ALIASES, load_alias_config
from .schema import CANONICAL_FEATURE_SCHEMA, FEATURE_ARROW_SCHEMA, validate_feature_frame
from .dedup import DeduplicationRegistry
from .providers import ProviderSchema, get_provider_schema, register_provider_schema, resolve_provider_schema
from .project import RecordProjector
from .export import export_features, features_to_arrow, features_to_frame, iter_projected

__all__ = [
    "AliasConfig",
    "FieldResolver",
    "DEFAULT_ALIASES",
    "load_alias_config",
    "CANONICAL_FEATURE_SCHEMA",
    "FEATURE_ARROW_SCHEMA",
    "validate_feature_frame",
    "DeduplicationRegistry",
    "ProviderSchema",
    "get_provider_schema",
    "register_provider_schema",
    "resolve_provider_schema",
    "RecordProjector",
    "export_features",
    "features_to_arrow",
    "features_to_frame",
    "iter_projected",
]
