"""Registry snapshot persistence.

Snapshots are stored in a key/value cache under REGISTRY_CACHE_KEY. A
missing or corrupt snapshot is never fatal: loading falls back to an
empty registry and forgets the corrupt entry.

Usage:
    >>> cache = FileRegistryCache(Path.home() / ".provision-sdk" / "cache")
    >>> registry = load_registry(cache)
    >>> register_manifest(registry, load_manifest("providers.yaml"))
    >>> cache_registry(registry, cache)
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from provision_sdk.registry.registry import Registry
from provision_sdk.types.exceptions import RegistrySnapshotError

logger = logging.getLogger(__name__)

REGISTRY_CACHE_KEY = "provision/registry"


@runtime_checkable
class RegistryCache(Protocol):
    """Key/value store holding registry snapshots."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def forget(self, key: str) -> bool:
        ...

    def has(self, key: str) -> bool:
        ...


class MemoryRegistryCache:
    """In-process cache, mostly useful in tests."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def put(self, key: str, value: str) -> None:
        self._items[key] = value

    def forget(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def has(self, key: str) -> bool:
        return key in self._items


class FileRegistryCache:
    """Cache storing one JSON file per key in a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{re.sub(r'[^A-Za-z0-9_.-]+', '_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path) as f:
                entry = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            logger.warning(f"Unreadable cache file {path}")
            return None

        value = entry.get("value") if isinstance(entry, dict) else None
        return value if isinstance(value, str) else None

    def put(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(key), "w") as f:
            json.dump({"key": key, "value": value}, f, indent=2)

    def forget(self, key: str) -> bool:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            return True
        return False

    def has(self, key: str) -> bool:
        return self.path_for(key).exists()


# =============================================================================
# Persistence Functions
# =============================================================================


def load_registry(cache: RegistryCache, key: str = REGISTRY_CACHE_KEY) -> Registry:
    """Restore the registry from cache.

    Args:
        cache: Cache to read from
        key: Cache key of the snapshot

    Returns:
        RESTORED registry if a valid snapshot exists, otherwise a new
        EMPTY registry
    """
    snapshot = cache.get(key)
    if snapshot is None:
        return Registry()

    try:
        registry = Registry.from_snapshot(snapshot)
    except RegistrySnapshotError as e:
        logger.warning(f"Discarding cached registry: {e}")
        cache.forget(key)
        return Registry()

    logger.debug(f"Restored registry with {len(registry)} categories from cache")
    return registry


def cache_registry(registry: Registry, cache: RegistryCache, key: str = REGISTRY_CACHE_KEY) -> bool:
    """Store a registry snapshot.

    Returns:
        True if the stored snapshot changed
    """
    snapshot = registry.to_snapshot()
    previous = cache.get(key)

    if previous is not None and _checksum(previous) == _checksum(snapshot):
        logger.debug("Cached registry is up to date")
        return False

    cache.put(key, snapshot)
    logger.info(f"Cached registry under {key}")
    return True


def clear_registry_cache(cache: RegistryCache, key: str = REGISTRY_CACHE_KEY) -> bool:
    """Forget the stored snapshot. Returns True if one existed."""
    return cache.forget(key)


def _checksum(snapshot: str) -> str:
    return hashlib.sha1(snapshot.encode("utf-8")).hexdigest()
