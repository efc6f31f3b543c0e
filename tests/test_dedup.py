"""
Tests for the per-batch deduplication registry.
"""
import pytest

from geoenrich.model import GeoFeature, GeometryKind
from geoenrich.poi.dedup import DeduplicationRegistry, normalize_text
from geoenrich.poi.fields import AliasConfig


def _feature(attributes, namespace="layer"):
    return GeoFeature(geometry_kind=GeometryKind.POINT, attributes=attributes, category_namespace=namespace)


class TestKeyFor:
    """Identity key construction."""

    def test_geoid_takes_priority(self):
        """Stable identifiers beat object ids so vintages collapse."""
        key = DeduplicationRegistry().key_for(_feature({"GEOID": "25025030300", "OBJECTID": 9, "NAME": "Tract"}))
        assert key == "layer|geoid:25025030300"

    def test_object_id_with_name(self):
        key = DeduplicationRegistry().key_for(_feature({"OBJECTID": 12.0, "NAME": "  Fire   Station  "}))
        assert key == "layer|oid:12|fire station"

    def test_name_truncated(self):
        key = DeduplicationRegistry().key_for(_feature({"OBJECTID": 1, "NAME": "x" * 80}))
        assert key == "layer|oid:1|" + "x" * 50

    def test_osm_ref_is_object_id(self):
        key = DeduplicationRegistry().key_for(_feature({"osm_ref": "way/123", "name": "Cafe"}))
        assert key == "layer|oid:way/123|cafe"

    def test_content_hash_fallback(self):
        """Without ids the key is a deterministic hash of name and attributes."""
        registry = DeduplicationRegistry()
        a = registry.key_for(_feature({"NAME": "Well", "DEPTH": 40}))
        b = registry.key_for(_feature({"DEPTH": 40, "NAME": "Well"}))
        c = registry.key_for(_feature({"NAME": "Well", "DEPTH": 41}))

        assert a.startswith("layer|hash:")
        assert a == b
        assert a != c

    def test_content_hash_with_mixed_nested_keys(self):
        """Opaque bags with non-string nested keys still hash deterministically."""
        registry = DeduplicationRegistry()
        feature = _feature({"meta": {1: "a", "b": 2}})
        key = registry.key_for(feature)

        assert key.startswith("layer|hash:")
        assert key == registry.key_for(_feature({"meta": {"b": 2, 1: "a"}}))

    def test_namespace_scopes_identity(self):
        registry = DeduplicationRegistry()
        feature = _feature({"OBJECTID": 1, "NAME": "A"})
        assert registry.key_for(feature, "one") != registry.key_for(feature, "two")

    def test_alias_config_override(self):
        """Keys are read through the alias tables, so custom id fields count."""
        aliases = AliasConfig({"object_id": ["PARCEL_NO"], "name": ["OWNER"]})
        key = DeduplicationRegistry().key_for(_feature({"PARCEL_NO": "A-7", "OWNER": "Smith"}), alias_config=aliases)
        assert key == "layer|oid:A-7|smith"

    def test_normalize_text(self):
        assert normalize_text("  Hello\tWORLD ") == "hello world"


class TestRegistry:
    """Marking and lookups."""

    def test_check_and_mark_idempotent(self):
        registry = DeduplicationRegistry()

        assert registry.check_and_mark("k") is True
        assert registry.check_and_mark("k") is False
        assert registry.duplicates == 1
        assert len(registry) == 1

    def test_has_and_mark(self):
        registry = DeduplicationRegistry()
        assert not registry.has("k")
        registry.mark("k")
        assert registry.has("k")
        assert "k" in registry

    def test_registries_independent(self):
        """Two registries never share identity state."""
        first, second = DeduplicationRegistry(), DeduplicationRegistry()
        first.mark("k")
        assert "k" not in second


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
