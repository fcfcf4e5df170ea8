"""Provision SDK Configuration.

This module defines the ProvisionConfig class used to assemble a registry
cache and provider factory at startup.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from provision_sdk.dataset import StorageConfiguration
from provision_sdk.registry.cache import REGISTRY_CACHE_KEY, FileRegistryCache

# Library config directory
CONFIG_DIR = Path.home() / ".provision-sdk"

ENV_PREFIX = "PROVISION_"


@dataclass
class ProvisionConfig:
    """Process-wide settings for the provision SDK.

    Attributes:
        cache_dir: Directory of the registry snapshot cache
        cache_key: Cache key of the registry snapshot
        storage_base_path: Base path handed to providers implementing
            StoresFiles; each provider gets a subdirectory
        storage_secret_key: Secret for encrypting provider storage
        outgoing_ips: IPs reported to providers implementing HasSystemInfo;
            detected from the host when empty

    Example:
        >>> config = ProvisionConfig.from_env()
        >>> registry = load_registry(config.make_cache(), config.cache_key)
        >>> factory = ProviderFactory.from_config(registry, config)
    """

    cache_dir: str = str(CONFIG_DIR / "cache")
    cache_key: str = REGISTRY_CACHE_KEY
    storage_base_path: Optional[str] = None
    storage_secret_key: Optional[str] = None
    outgoing_ips: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> ProvisionConfig:
        """Create config from ``PROVISION_*`` environment variables.

        PROVISION_OUTGOING_IPS is a comma separated list.
        """
        environ = os.environ if environ is None else environ
        defaults = cls()

        ips = environ.get(f"{ENV_PREFIX}OUTGOING_IPS", "")

        return cls(
            cache_dir=environ.get(f"{ENV_PREFIX}CACHE_DIR", defaults.cache_dir),
            cache_key=environ.get(f"{ENV_PREFIX}CACHE_KEY", defaults.cache_key),
            storage_base_path=environ.get(f"{ENV_PREFIX}STORAGE_BASE_PATH"),
            storage_secret_key=environ.get(f"{ENV_PREFIX}STORAGE_SECRET_KEY"),
            outgoing_ips=[ip.strip() for ip in ips.split(",") if ip.strip()],
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProvisionConfig:
        """Create from dictionary, ignoring unknown keys."""
        known = {key: value for key, value in data.items() if key in cls.__dataclass_fields__}
        return cls(**known)

    def make_cache(self) -> FileRegistryCache:
        return FileRegistryCache(self.cache_dir)

    def storage_configuration(self) -> Optional[StorageConfiguration]:
        """Storage configuration for StoresFiles providers, if configured."""
        if not self.storage_base_path or not self.storage_secret_key:
            return None

        return StorageConfiguration.create({
            "base_path": self.storage_base_path,
            "secret_key": self.storage_secret_key,
        })
