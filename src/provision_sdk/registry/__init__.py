"""Registry - registered categories, providers and their snapshots."""

from provision_sdk.registry.cache import (
    REGISTRY_CACHE_KEY,
    FileRegistryCache,
    MemoryRegistryCache,
    RegistryCache,
    cache_registry,
    clear_registry_cache,
    load_registry,
)
from provision_sdk.registry.manifest import Manifest, load_manifest, register_manifest
from provision_sdk.registry.registers import (
    IDENTIFIER_PATTERN,
    CategoryRegister,
    ClassRegister,
    DataSetRegister,
    DataSetType,
    FunctionRegister,
    ProviderRegister,
)
from provision_sdk.registry.registry import BufferedRegister, Registry, RegistryState

__all__ = [
    # Registry
    "Registry",
    "RegistryState",
    "BufferedRegister",
    # Registers
    "ClassRegister",
    "CategoryRegister",
    "ProviderRegister",
    "FunctionRegister",
    "DataSetRegister",
    "DataSetType",
    "IDENTIFIER_PATTERN",
    # Snapshot cache
    "REGISTRY_CACHE_KEY",
    "RegistryCache",
    "MemoryRegistryCache",
    "FileRegistryCache",
    "load_registry",
    "cache_registry",
    "clear_registry_cache",
    # Manifests
    "Manifest",
    "load_manifest",
    "register_manifest",
]
