"""Quick Start Example - Registering and Running a Provider.

This example demonstrates the basic usage of provision-sdk: declaring a
category with typed functions, implementing a provider, registering both,
and executing jobs whose outcomes are always normalized Results.
"""

import logging
import tempfile

from provision_sdk import (
    AboutData,
    BaseCategory,
    BaseProvider,
    DataSet,
    FunctionSignature,
    LogsDebugData,
    MemoryRegistryCache,
    ProviderFactory,
    ProvisionConfig,
    Registry,
    ResultData,
    Rules,
    SystemInfo,
    cache_registry,
    generate_password,
    load_registry,
)
from provision_sdk.dataset.examples import RegisterParameterSet, ResetPasswordParameterSet

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# =============================================================================
# Category and Provider
# =============================================================================


class AccountResult(ResultData):
    @classmethod
    def rules(cls) -> Rules:
        return Rules({"username": ["required", "alpha"]})


class DemoConfiguration(DataSet):
    @classmethod
    def rules(cls) -> Rules:
        return Rules({"api_key": ["required", "string", "min:8"]})


class DomainsCategory(BaseCategory):
    FUNCTIONS = {
        "register": FunctionSignature(RegisterParameterSet, ResultData),
        "reset_password": FunctionSignature(ResetPasswordParameterSet, AccountResult),
    }

    @classmethod
    def about_category(cls) -> AboutData:
        return AboutData.create({"name": "Domains", "description": "Register and manage domain names"})


class DemoRegistrar(BaseProvider, DomainsCategory, LogsDebugData):
    CONFIGURATION = DemoConfiguration

    @classmethod
    def about_provider(cls) -> AboutData:
        return AboutData.create({"name": "Demo Registrar", "description": "Registers nothing, successfully"})

    def register(self, params: RegisterParameterSet):
        if params.sld == "google":
            return self.error_result("Domain name is not available", {"domain": params.domain})

        self.logger.info(f"Registering {params.domain} for {params.renew_years} year(s)")
        return self.ok_result("Domain registered", {"domain": params.domain})

    def reset_password(self, params: ResetPasswordParameterSet):
        return {"username": params.username}


# =============================================================================
# Examples
# =============================================================================


def example_registry() -> Registry:
    """Example: Building a registry."""
    print("=== Registry Example ===")

    registry = Registry()
    registry.register_category("domains", DomainsCategory)
    registry.register_provider("domains", "demo-registrar", DemoRegistrar)

    print(registry.summary())
    return registry


def example_jobs(registry: Registry):
    """Example: Running jobs and reading results."""
    print("\n=== Job Example ===")

    factory = ProviderFactory(registry, system_info=SystemInfo.create({"outgoing_ips": ["192.0.2.10"]}))
    provider = factory.create("domains", "demo-registrar", {"api_key": generate_password(20, "a-z0-9")})

    for sld in ("example", "google"):
        result = provider.make_job("register", {
            "sld": sld,
            "tld": "com",
            "renew_years": 1,
            "registrant_id": "r-100",
        }).execute()
        print(f"{sld}.com -> {result.get_status()}: {result.get_message()}")

    # Missing renew_years and registrant details
    result = provider.make_job("register", {"sld": "example", "tld": "com"}).execute()
    print(f"Invalid parameters -> {result.get_message()}")
    for field, messages in result.get_data()["validation_errors"].items():
        print(f"  {field}: {messages[0]}")

    # Provider returns a username the return rules reject
    result = provider.make_job("reset_password", {"username": "jane99", "password": "x"}).execute()
    print(f"Invalid return data -> {result.get_message()}")
    print(f"  {result.get_debug()['validation_errors']}")


def example_cache(registry: Registry):
    """Example: Restoring a registry from its snapshot."""
    print("\n=== Cache Example ===")

    cache = MemoryRegistryCache()
    cache_registry(registry, cache)

    restored = load_registry(cache)
    print(f"Restored: {restored!r}")

    # Registrations on a restored registry are buffered until rebuild()
    restored.register_category("domains", DomainsCategory)
    restored.register_provider("domains", "demo-registrar", DemoRegistrar)
    print(f"Buffered calls: {len(restored.get_buffer())}")
    print(f"Snapshot changed: {cache_registry(restored, cache)}")

    with tempfile.TemporaryDirectory() as directory:
        config = ProvisionConfig(cache_dir=directory)
        file_cache = config.make_cache()
        cache_registry(registry, file_cache, config.cache_key)
        print(f"Stored snapshot at {file_cache.path_for(config.cache_key)}")


def main():
    """Run all examples."""
    print("provision-sdk Quick Start Examples")
    print("=" * 50)

    registry = example_registry()
    example_jobs(registry)
    example_cache(registry)

    print("\n" + "=" * 50)
    print("Examples completed!")


if __name__ == "__main__":
    main()
