"""Provision Types - shared exceptions and the Result model."""

from provision_sdk.types.exceptions import (
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
)
from provision_sdk.types.result import (
    STATUS_ERROR,
    STATUS_OK,
    ProviderResult,
    Result,
    ResultStatus,
    format_exception,
)

__all__ = [
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
    "format_exception",
]
