"""
Feature Deduplication

Tracks which logical entities have already been emitted in one export batch.
The same entity shows up more than once when a layer reports it both as
containing and again in its nearby list, or when several dataset vintages
reference the same GEOID.

A registry is created per export call and thrown away afterwards; it is
never shared between batches.
"""
import json
import uuid
from typing import Any, Optional, Set

from ..config import DEDUP_CONTENT_MAX_CHARS, DEDUP_NAME_MAX_CHARS
from ..model import GeoFeature
from .fields import DEFAULT_ALIASES, AliasConfig, json_safe, resolve


def normalize_text(s: str) -> str:
    return " ".join(str(s).strip().lower().split())


def _id_text(value: Any) -> str:
    # ArcGIS returns integer ids as floats on some layers (12.0 -> "12")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class DeduplicationRegistry:
    """
    Call-scoped identity set for one export batch.

    Key priority:
    1. stable cross-vintage identifier (GEOID family) -> "{ns}|geoid:{id}"
    2. object id + truncated name                  -> "{ns}|oid:{id}|{name}"
    3. content hash of name + serialized attributes -> "{ns}|hash:{uuid5}"
    """

    def __init__(self, alias_config: Optional[AliasConfig] = None):
        self.alias_config = alias_config or DEFAULT_ALIASES
        self._keys: Set[str] = set()
        self.duplicates = 0

    def key_for(
        self,
        feature: GeoFeature,
        category_namespace: Optional[str] = None,
        alias_config: Optional[AliasConfig] = None,
    ) -> str:
        """
        Deterministic identity for a feature within a namespace.

        Args:
            feature: Raw feature
            category_namespace: Identity scope; defaults to the feature's namespace
            alias_config: Alias tables to read ids and names through

        Returns:
            Dedup key string
        """
        aliases = alias_config or self.alias_config
        ns = category_namespace if category_namespace is not None else feature.category_namespace
        attrs = feature.attributes if isinstance(feature.attributes, dict) else {}

        stable_id = resolve(attrs, aliases.keys_for("stable_id"))
        if stable_id is not None:
            return f"{ns}|geoid:{_id_text(stable_id)}"

        name = normalize_text(resolve(attrs, aliases.keys_for("name"), fallback=""))
        object_id = resolve(attrs, aliases.keys_for("object_id"))
        if object_id is not None:
            return f"{ns}|oid:{_id_text(object_id)}|{name[:DEDUP_NAME_MAX_CHARS]}"

        serialized = json.dumps(json_safe(attrs), sort_keys=True)
        content = f"{name}|{serialized[:DEDUP_CONTENT_MAX_CHARS]}"
        return f"{ns}|hash:{uuid.uuid5(uuid.NAMESPACE_DNS, content)}"

    def has(self, key: str) -> bool:
        return key in self._keys

    def mark(self, key: str) -> None:
        self._keys.add(key)

    def check_and_mark(self, key: str) -> bool:
        """Mark ``key``; True if it was new, False (and counted) if already seen."""
        if key in self._keys:
            self.duplicates += 1
            return False
        self._keys.add(key)
        return True

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._keys)
