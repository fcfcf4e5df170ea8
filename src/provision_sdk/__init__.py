"""Provision SDK - schema-validated provider functions behind shared categories.

Independent provider implementations are registered under categories and
invoked uniformly. Every parameter set, configuration and return value is
validated against declarative rules, and every invocation ends in one
normalized Result.

Declaring a category and a provider:
    >>> from provision_sdk import BaseCategory, BaseProvider, FunctionSignature, ResultData
    >>> class DomainsCategory(BaseCategory):
    ...     FUNCTIONS = {"register": FunctionSignature(RegisterParameterSet, ResultData)}
    ...     ...
    >>> class RegistrarX(BaseProvider, DomainsCategory):
    ...     def register(self, params):
    ...         return self.ok_result("Domain registered", {"domain": params.domain})

Registering and invoking:
    >>> registry = Registry()
    >>> registry.register_category("domains", DomainsCategory)
    >>> registry.register_provider("domains", "registrar-x", RegistrarX)
    >>> provider = ProviderFactory(registry).create("domains", "registrar-x")
    >>> result = provider.make_job("register", {"sld": "example", "tld": "com"}).execute()
    >>> result.to_dict()

Caching the registry between processes:
    >>> config = ProvisionConfig.from_env()
    >>> registry = load_registry(config.make_cache(), config.cache_key)
"""

__version__ = "0.1.0"

from provision_sdk.types import (
    # Exceptions
    CriticalProviderError,
    InvalidDataSetError,
    InvalidFunctionParameterDataError,
    InvalidFunctionReturnDataError,
    InvalidProviderConfigurationError,
    InvalidProviderJob,
    ProviderJobError,
    ProvisionError,
    ProvisionFunctionError,
    RegistryError,
    RegistrySnapshotError,
    ValidationFailed,
    # Results
    STATUS_ERROR,
    STATUS_OK,
    ProviderResult,
    Result,
    ResultStatus,
)

from provision_sdk.dataset import (
    AboutData,
    DataSet,
    EmptyData,
    ResultData,
    Rules,
    StorageConfiguration,
    SystemInfo,
    Validator,
)
from provision_sdk.provider import (
    BaseCategory,
    BaseProvider,
    FunctionSignature,
    HasSystemInfo,
    LogsDebugData,
    OperationFailed,
    Provider,
    ProviderFactory,
    ProviderJob,
    StorageLocation,
    StoresFiles,
)
from provision_sdk.registry import (
    REGISTRY_CACHE_KEY,
    CategoryRegister,
    FileRegistryCache,
    FunctionRegister,
    MemoryRegistryCache,
    ProviderRegister,
    Registry,
    RegistryState,
    cache_registry,
    clear_registry_cache,
    load_manifest,
    load_registry,
    register_manifest,
)
from provision_sdk.config import ProvisionConfig
from provision_sdk.utils import generate_password

__all__ = [
    "__version__",
    # Exceptions
    "ProvisionError",
    "ValidationFailed",
    "InvalidDataSetError",
    "InvalidFunctionParameterDataError",
    "InvalidFunctionReturnDataError",
    "InvalidProviderConfigurationError",
    "ProviderJobError",
    "InvalidProviderJob",
    "ProvisionFunctionError",
    "CriticalProviderError",
    "RegistryError",
    "RegistrySnapshotError",
    # Results
    "Result",
    "ProviderResult",
    "ResultStatus",
    "STATUS_OK",
    "STATUS_ERROR",
    # Data sets
    "DataSet",
    "Rules",
    "Validator",
    "EmptyData",
    "ResultData",
    "AboutData",
    "SystemInfo",
    "StorageConfiguration",
    # Providers
    "BaseCategory",
    "BaseProvider",
    "FunctionSignature",
    "OperationFailed",
    "LogsDebugData",
    "StoresFiles",
    "HasSystemInfo",
    "Provider",
    "ProviderFactory",
    "ProviderJob",
    "StorageLocation",
    # Registry
    "Registry",
    "RegistryState",
    "CategoryRegister",
    "ProviderRegister",
    "FunctionRegister",
    "REGISTRY_CACHE_KEY",
    "MemoryRegistryCache",
    "FileRegistryCache",
    "load_registry",
    "cache_registry",
    "clear_registry_cache",
    "load_manifest",
    "register_manifest",
    # Config
    "ProvisionConfig",
    # Utilities
    "generate_password",
]
