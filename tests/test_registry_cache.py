"""Tests for registry snapshot caching."""

import json
import logging

import pytest

from provision_sdk import (
    REGISTRY_CACHE_KEY,
    FileRegistryCache,
    MemoryRegistryCache,
    RegistryState,
    cache_registry,
    clear_registry_cache,
    load_registry,
)
from provision_sdk.registry import RegistryCache


@pytest.fixture
def file_cache(tmp_path):
    return FileRegistryCache(tmp_path / "cache")


class TestCaches:
    """Test the cache implementations."""

    @pytest.mark.parametrize("make_cache", [
        lambda tmp_path: MemoryRegistryCache(),
        lambda tmp_path: FileRegistryCache(tmp_path / "cache"),
    ])
    def test_get_put_forget(self, make_cache, tmp_path):
        """Test the key/value operations."""
        cache = make_cache(tmp_path)

        assert isinstance(cache, RegistryCache)
        assert cache.get("a") is None
        assert not cache.has("a")

        cache.put("a", "value")

        assert cache.has("a")
        assert cache.get("a") == "value"
        assert cache.forget("a")
        assert not cache.forget("a")
        assert cache.get("a") is None

    def test_file_cache_layout(self, file_cache):
        """Test keys map to sanitized JSON files."""
        file_cache.put(REGISTRY_CACHE_KEY, "snapshot")
        path = file_cache.path_for(REGISTRY_CACHE_KEY)

        assert path.name == "provision_registry.json"
        assert json.loads(path.read_text()) == {"key": REGISTRY_CACHE_KEY, "value": "snapshot"}

    def test_file_cache_unreadable(self, file_cache, caplog):
        """Test corrupt cache files read as missing."""
        file_cache.directory.mkdir(parents=True)
        file_cache.path_for("a").write_text("{not json")

        with caplog.at_level(logging.WARNING):
            assert file_cache.get("a") is None

        assert "Unreadable cache file" in caplog.text

    def test_file_cache_non_string_value(self, file_cache):
        """Test entries without a string value read as missing."""
        file_cache.directory.mkdir(parents=True)
        file_cache.path_for("a").write_text('{"key": "a", "value": 5}')

        assert file_cache.get("a") is None


class TestPersistence:
    """Test loading and storing registries."""

    def test_load_without_snapshot(self, cache):
        """Test a missing snapshot gives an empty registry."""
        registry = load_registry(cache)
        assert registry.state is RegistryState.EMPTY
        assert len(registry) == 0

    def test_cache_and_load(self, registry, cache):
        """Test a cached registry is restored."""
        assert cache_registry(registry, cache)

        restored = load_registry(cache)

        assert restored.was_cached()
        assert restored.to_dict() == registry.to_dict()

    def test_cache_unchanged(self, registry, cache):
        """Test storing an identical snapshot is skipped."""
        assert cache_registry(registry, cache)
        assert not cache_registry(registry, cache)

    def test_cache_changed(self, registry, cache):
        """Test a changed registry replaces the snapshot."""
        cache_registry(registry, cache, "custom")
        registry.register_category("hosting", "sample_domains:HostingCategory")

        assert cache_registry(registry, cache, "custom")
        assert len(load_registry(cache, "custom")) == 2

    def test_corrupt_snapshot_forgotten(self, cache, caplog):
        """Test a corrupt snapshot is discarded."""
        cache.put(REGISTRY_CACHE_KEY, '{"version": 1, "categories": [{"identifier": "x"}]}')

        with caplog.at_level(logging.WARNING, logger="provision_sdk.registry.cache"):
            registry = load_registry(cache)

        assert registry.state is RegistryState.EMPTY
        assert not cache.has(REGISTRY_CACHE_KEY)
        assert "Discarding cached registry" in caplog.text

    def test_clear(self, registry, cache):
        """Test clearing the stored snapshot."""
        cache_registry(registry, cache)

        assert clear_registry_cache(cache)
        assert not clear_registry_cache(cache)

    def test_startup_cycle(self, registry, file_cache):
        """Test restore, re-register and re-cache across processes."""
        cache_registry(registry, file_cache)

        restored = load_registry(file_cache)
        restored.register_category("domains", "sample_domains:DomainsCategory")
        restored.register_provider("domains", "registrar-x", "sample_domains:RegistrarX")

        assert cache_registry(restored, file_cache)

        providers = load_registry(file_cache).get_category("domains").providers
        assert [provider.identifier for provider in providers] == ["registrar-x"]
