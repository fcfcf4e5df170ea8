"""Providers - category and provider base classes, factory and jobs."""

from provision_sdk.provider.base import (
    BaseCategory,
    BaseProvider,
    FunctionSignature,
    HasSystemInfo,
    LogsDebugData,
    OperationFailed,
    StoresFiles,
)
from provision_sdk.provider.factory import Provider, ProviderFactory, StorageLocation
from provision_sdk.provider.job import CRITICAL_EXCEPTIONS, ProviderJob, is_critical

__all__ = [
    # Base classes
    "BaseCategory",
    "BaseProvider",
    "FunctionSignature",
    "OperationFailed",
    # Capabilities
    "LogsDebugData",
    "StoresFiles",
    "HasSystemInfo",
    # Instantiation
    "Provider",
    "ProviderFactory",
    "StorageLocation",
    # Jobs
    "ProviderJob",
    "CRITICAL_EXCEPTIONS",
    "is_critical",
]
