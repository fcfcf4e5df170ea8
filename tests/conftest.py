"""Test configuration for provision-sdk."""
import sys
from pathlib import Path

# Add src directory and the sample providers to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import pytest

from provision_sdk import MemoryRegistryCache, ProviderFactory, Registry, SystemInfo

import sample_domains


@pytest.fixture
def registry():
    """Registry with the sample domains category and its providers."""
    registry = Registry()
    registry.register_category("domains", sample_domains.DomainsCategory)
    registry.register_provider("domains", "registrar-x", sample_domains.RegistrarX)
    registry.register_provider("domains", "incomplete", sample_domains.IncompleteRegistrar)
    return registry


@pytest.fixture
def factory(registry):
    """Provider factory with fixed system info."""
    return ProviderFactory(
        registry,
        system_info=SystemInfo.create({"outgoing_ips": ["203.0.113.10"]}),
    )


@pytest.fixture
def registrar_x(factory):
    """Configured registrar-x provider."""
    return factory.create("domains", "registrar-x", {"api_key": "secret"})


@pytest.fixture
def register_params():
    """Valid parameters for the register function."""
    return {"sld": "example", "tld": "com", "renew_years": 1, "registrant_id": "abc"}


@pytest.fixture
def cache():
    """Empty in-memory registry cache."""
    return MemoryRegistryCache()
