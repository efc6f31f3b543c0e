"""
Semantic field resolution over provider attribute bags.

Providers spell the same field many ways (``NAME``, ``name``, ``FACILITY_NAME``,
``blockName`` ...). Each semantic field has one shared, ordered alias list;
adding a provider means adding aliases here (or in its provider schema),
not writing a new branch.
"""
from __future__ import annotations

import datetime as dt
import math
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import yaml

from ..config import ALIASES_YAML

# Semantic field -> provider keys, in priority order
DEFAULT_FIELD_ALIASES: Dict[str, List[str]] = {
    "name": [
        "name", "NAME", "Name", "displayName", "display_name", "title", "TITLE",
        "FACILITY_NAME", "facility_name", "FacilityName", "SITE_NAME", "site_name",
        "PARK_NAME", "park_name", "PROPERTY_NAME", "property_name", "propertyName",
        "blockName", "block_name", "BLOCK_NAME", "FIRE_NAME", "IncidentName",
        "LABEL", "label",
    ],
    "phone": ["phone", "PHONE", "Phone", "telephone", "TELEPHONE", "PHONE_NUM", "phone_number", "contact:phone"],
    "website": ["website", "WEBSITE", "Website", "url", "URL", "web", "contact:website"],
    "address": [
        "address", "ADDRESS", "Address", "fullAddress", "full_address", "FULL_ADDRESS",
        "SITE_ADDR", "site_addr", "STREET", "street", "addr:street",
    ],
    "city": ["city", "CITY", "City", "townName", "town_name", "TOWN_NAME", "TOWN", "town", "MUNICIPALITY", "addr:city"],
    "county": ["county", "COUNTY", "County", "countyName", "county_name", "COUNTY_NAME", "CNTY_NAME"],
    "owner": ["owner", "OWNER", "Owner", "ownerName", "owner_name", "OWNER_NAME", "OWNER1", "OWN_NAME", "operator", "OPERATOR"],
    "status": ["status", "STATUS", "Status"],
    "acres": ["acres", "ACRES", "Acres", "GIS_ACRES", "gis_acres", "ACREAGE", "acreage", "CALC_ACRES"],
    "object_id": [
        "OBJECTID", "objectid", "objectId", "ObjectId", "OBJECTID_1", "FID", "fid",
        "osm_ref", "ID", "id",
    ],
    # Identifiers that survive dataset vintages (census GEOIDs, HUC codes)
    "stable_id": [
        "GEOID", "geoid", "GeoID", "GEOID20", "geoid20", "GEOID10", "geoid10", "GEOIDFQ",
        "blockGeoid", "block_geoid", "BLOCK_GEOID", "HUC12", "huc12", "HUC_12",
    ],
}

# Fields surfaced on every NormalizedFeature besides the display name
DISPLAY_FIELDS: Tuple[str, ...] = ("address", "city", "county", "phone", "website", "owner", "status", "acres")


def is_empty(value: Any) -> bool:
    """None, blank strings and missing scalars (NaN, NA, NaT) count as absent; 0 and False do not."""
    if isinstance(value, str):
        return value.strip() == ""
    if pd.api.types.is_scalar(value) or value is None:
        return bool(pd.isna(value))
    return False


def resolve(bag: Any, candidate_keys: Iterable[str], fallback: Any = None) -> Any:
    """
    Return the first present, non-empty value among ``candidate_keys``.

    No type coercion is applied; callers format numbers and dates.
    """
    if not isinstance(bag, Mapping):
        return fallback
    for key in candidate_keys:
        if key in bag and not is_empty(bag[key]):
            return bag[key]
    return fallback


def _dedupe(keys: Iterable[str]) -> List[str]:
    seen = set()
    out = []
    for key in keys:
        if key not in seen:
            seen.add(key)
            out.append(key)
    return out


class AliasConfig:
    """Immutable mapping of semantic field -> ordered provider keys."""

    def __init__(self, aliases: Mapping[str, Sequence[str]]):
        self._aliases: Dict[str, Tuple[str, ...]] = {
            str(field): tuple(_dedupe(str(k) for k in keys)) for field, keys in aliases.items()
        }

    def keys_for(self, field: str) -> Tuple[str, ...]:
        return self._aliases.get(field, ())

    def fields(self) -> List[str]:
        return list(self._aliases)

    def merged_with(self, overrides: Optional[Mapping[str, Sequence[str]]]) -> "AliasConfig":
        """New config with ``overrides`` prepended to each field's alias list."""
        if not overrides:
            return self
        merged = {field: list(keys) for field, keys in self._aliases.items()}
        for field, keys in overrides.items():
            merged[field] = list(keys) + merged.get(field, [])
        return AliasConfig(merged)

    def __eq__(self, other):
        return isinstance(other, AliasConfig) and self._aliases == other._aliases

    def __repr__(self):
        return f"AliasConfig(fields={self.fields()})"


DEFAULT_ALIASES = AliasConfig(DEFAULT_FIELD_ALIASES)


def load_alias_config(
    path: Optional[Union[str, Path]] = None,
    base: AliasConfig = DEFAULT_ALIASES,
) -> AliasConfig:
    """
    Extend an alias config from a YAML file.

    The file maps semantic field names to lists of provider keys; its keys
    take priority over the base lists. Falls back to ``GEOENRICH_ALIASES_YAML``
    when no path is given, and to ``base`` when neither is set.

    Raises:
        ValueError: if the YAML document is not a mapping of lists of strings
    """
    path = path or ALIASES_YAML
    if not path:
        return base
    with open(path, "r", encoding="utf-8") as fh:
        doc = yaml.safe_load(fh) or {}
    if not isinstance(doc, dict):
        raise ValueError(f"Alias file {path} must contain a mapping, got {type(doc).__name__}")
    for field, keys in doc.items():
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            raise ValueError(f"Alias file {path}: '{field}' must be a list of strings")
    return base.merged_with(doc)


class FieldResolver:
    """Resolves semantic fields from attribute bags through an ``AliasConfig``."""

    def __init__(self, alias_config: Optional[AliasConfig] = None):
        self.alias_config = alias_config or DEFAULT_ALIASES

    @staticmethod
    def resolve(bag: Any, candidate_keys: Iterable[str], fallback: Any = None) -> Any:
        return resolve(bag, candidate_keys, fallback)

    def resolve_field(self, bag: Any, field: str, fallback: Any = None) -> Any:
        return resolve(bag, self.alias_config.keys_for(field), fallback)

    def resolve_fields(self, bag: Any, fields: Iterable[str] = DISPLAY_FIELDS) -> Dict[str, Any]:
        """Resolve several fields at once, leaving out the ones not found."""
        out = {}
        for field in fields:
            value = self.resolve_field(bag, field)
            if value is not None:
                out[field] = json_safe(value)
        return out


def json_safe(value: Any) -> Any:
    """Convert a provider value into something ``json.dumps`` accepts."""
    if isinstance(value, np.generic):
        return json_safe(value.item())
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return json_safe(float(value))
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [json_safe(v) for v in value]
    return str(value)


def flatten_attributes(
    bag: Any,
    exclude: Iterable[str] = (),
    sep: str = ".",
) -> Dict[str, Any]:
    """
    Flatten nested attribute mappings into dotted keys with JSON-safe values.

    Args:
        bag: Provider attribute bag
        exclude: Top-level keys to leave out
        sep: Separator for nested keys

    Returns:
        Flat dict
    """
    if not isinstance(bag, Mapping):
        return {}
    skip = set(exclude)
    flat: Dict[str, Any] = {}

    def _walk(prefix: str, value: Any):
        if isinstance(value, Mapping) and value:
            for k, v in value.items():
                _walk(f"{prefix}{sep}{k}", v)
        else:
            flat[prefix] = json_safe(value)

    for key, value in bag.items():
        if key in skip:
            continue
        _walk(str(key), value)
    return flat
