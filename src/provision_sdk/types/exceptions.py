"""Provision Types - Exception Classes.

This module defines all exceptions used by the provision SDK.
All exceptions inherit from ProvisionError for easy catching.

Usage:
    try:
        registry.register_category("domains", DomainsCategory)
    except ProvisionError as e:
        print(f"SDK error: {e}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from provision_sdk.provider.job import ProviderJob


class ProvisionError(Exception):
    """Base exception for all provision SDK errors.

    All exceptions in this SDK inherit from this class,
    making it easy to catch all SDK-related errors.
    """
    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationFailed(ProvisionError):
    """Raised by a bare Validator when the data fails its rules."""

    def __init__(self, errors: dict[str, list[str]], message: str = ""):
        self.errors = errors
        if not message:
            message = _summarize_errors(errors)
        super().__init__(message)


class InvalidDataSetError(ProvisionError):
    """The given data failed to pass the validation rules of a data set.

    Field errors can be re-keyed under a prefix (e.g. ``parameters``) so the
    origin of the data is visible in the error map.
    """

    def __init__(self, errors: dict[str, list[str]], message: str = ""):
        self._errors = {field: list(messages) for field, messages in errors.items()}
        self.error_prefix: Optional[str] = None
        super().__init__(message or _summarize_errors(errors))

    @classmethod
    def from_invalid_data_set(cls, error: InvalidDataSetError) -> InvalidDataSetError:
        """Re-raise an invalid data set as a more specific error."""
        new = cls(error._errors)
        new.__cause__ = error
        return new

    def set_error_prefix(self, prefix: Optional[str]) -> InvalidDataSetError:
        self.error_prefix = prefix.rstrip(".") if prefix else None
        return self

    def errors(self) -> dict[str, list[str]]:
        """Get the field error map, keyed under the error prefix if set."""
        if not self.error_prefix:
            return {field: list(messages) for field, messages in self._errors.items()}

        return {
            f"{self.error_prefix}.{field.lstrip('.')}": list(messages)
            for field, messages in self._errors.items()
        }


class InvalidFunctionParameterDataError(InvalidDataSetError):
    """The given parameter data failed to pass the rules of its data set."""

    def __init__(self, errors: dict[str, list[str]], message: str = ""):
        super().__init__(errors, message or "The given provision function parameters were invalid")


class InvalidFunctionReturnDataError(InvalidDataSetError):
    """The provider returned data which failed the rules of its data set."""

    def __init__(self, errors: dict[str, list[str]], message: str = ""):
        super().__init__(errors, message or "Unexpected provision provider return data")


class InvalidProviderConfigurationError(InvalidDataSetError):
    """The given provider configuration failed its data set rules."""

    def __init__(self, errors: dict[str, list[str]], message: str = ""):
        super().__init__(errors, message or "Provider configuration error")


# =============================================================================
# Provider Job Errors
# =============================================================================


class ProviderJobError(ProvisionError):
    """Error raised in the context of a provider job."""

    def __init__(self, message: str = ""):
        self.job: Optional[ProviderJob] = None
        super().__init__(message)

    def with_provider_job(self, job: ProviderJob) -> ProviderJobError:
        self.job = job
        return self


class InvalidProviderJob(ProviderJobError):
    """Raised when a job is created for a function the provider does not have."""

    def __init__(self, function: str, provider: str = ""):
        self.function = function
        self.provider = provider
        msg = f"Requested function {function} is not defined"
        if provider:
            msg += f" for provider {provider}"
        super().__init__(msg)

    @classmethod
    def for_invalid_function(cls, job: ProviderJob) -> InvalidProviderJob:
        error = cls(job.function, job.provider.register.identifier)
        error.with_provider_job(job)
        return error


class ProvisionFunctionError(ProviderJobError):
    """A provider function failed in an expected, caller-facing way.

    Carries the result data and debug payloads that end up on the error
    Result. Provider code normally returns ``OperationFailed`` instead; this
    exception exists for helpers deep in a call stack.
    """

    def __init__(
        self,
        message: str,
        data: Optional[dict[str, Any]] = None,
        debug: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.data = _to_plain_dict(data)
        self.debug = _to_plain_dict(debug)
        super().__init__(message)

    @classmethod
    def create(cls, message: str, previous: Optional[BaseException] = None) -> ProvisionFunctionError:
        error = cls(message)
        error.__cause__ = previous
        return error

    def with_data(self, data: Any = None) -> ProvisionFunctionError:
        self.data = _to_plain_dict(data)
        return self

    def with_debug(self, debug: Any = None) -> ProvisionFunctionError:
        self.debug = _to_plain_dict(debug)
        return self


class CriticalProviderError(ProviderJobError):
    """A provider function hit a defect-class fault.

    Raise a subclass of this from provider code to force the critical
    classification for a fault that would otherwise count as recoverable.
    """

    def __init__(self, message: str = "Critical provision provider error"):
        super().__init__(message)


# =============================================================================
# Registry Errors
# =============================================================================


class RegistryError(ProvisionError):
    """Registration of a category, provider or function was inconsistent."""

    @classmethod
    def for_invalid_identifier(cls, identifier: str, pattern: str) -> RegistryError:
        return cls(f"Invalid identifier {identifier!r}; must match {pattern}")

    @classmethod
    def for_duplicate_category(cls, identifier: str) -> RegistryError:
        return cls(f"Category {identifier} already registered")

    @classmethod
    def for_duplicate_provider(cls, category: str, identifier: str) -> RegistryError:
        return cls(f"Provider {identifier} already registered for category {category}")

    @classmethod
    def for_unknown_category(cls, category: Any) -> RegistryError:
        return cls(f"Category {category} is not registered")

    @classmethod
    def for_invalid_class(cls, class_name: str, reason: str) -> RegistryError:
        return cls(f"Class {class_name} cannot be registered: {reason}")


class RegistrySnapshotError(RegistryError):
    """Raised when a persisted registry snapshot cannot be restored."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid registry snapshot: {reason}")


# =============================================================================
# Helpers
# =============================================================================


def _summarize_errors(errors: dict[str, list[str]]) -> str:
    messages = [message for field_messages in errors.values() for message in field_messages]
    if not messages:
        return "The given data was invalid."
    summary = messages[0]
    if len(messages) > 1:
        summary += f" (and {len(messages) - 1} more error{'s' if len(messages) > 2 else ''})"
    return summary


def _to_plain_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return dict(value) if isinstance(value, dict) else {}
