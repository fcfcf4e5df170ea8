"""Base Category and Provider Classes.

A category is an abstract capability (e.g. domain registration) declaring
the provision functions every provider of that category offers. A provider
is a concrete implementation of those functions for one backend.

Declaring a category:
    >>> class DomainsCategory(BaseCategory):
    ...     FUNCTIONS = {
    ...         "register": FunctionSignature(RegisterParameterSet, ResultData),
    ...         "renew": (RenewParameterSet, ResultData),
    ...     }
    ...
    ...     @classmethod
    ...     def about_category(cls) -> AboutData:
    ...         return AboutData.create({"name": "Domains", "description": "Domain names"})

Implementing a provider:
    >>> class RegistrarX(BaseProvider, DomainsCategory):
    ...     CONFIGURATION = RegistrarXConfiguration
    ...
    ...     @classmethod
    ...     def about_provider(cls) -> AboutData:
    ...         return AboutData.create({"name": "Registrar X", "description": "..."})
    ...
    ...     def register(self, params: RegisterParameterSet) -> ResultData:
    ...         ...
    ...         return self.ok_result("Domain registered", {"domain": params.domain})

Provider functions report expected business failures by returning
``self.error_result(...)`` rather than raising.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

import httpx

from provision_sdk.dataset import AboutData, DataSet, EmptyData, ResultData, SystemInfo
from provision_sdk.types.result import STATUS_ERROR, ProviderResult

# Response bodies in request debug are cut to this many characters
DEBUG_BODY_LIMIT = 300

DataSetReference = Union[type, str, None]


# =============================================================================
# Function table and outcomes
# =============================================================================


@dataclass(frozen=True)
class FunctionSignature:
    """Parameter and return data set types of a provision function.

    Types are given as DataSet classes or as ``"module:ClassName"`` paths.
    None selects the default (EmptyData parameters, ResultData returns).
    """

    parameter: DataSetReference = None
    returns: DataSetReference = None

    @classmethod
    def coerce(cls, value: Any) -> FunctionSignature:
        """Accept a signature, a ``(parameter, returns)`` pair or a parameter type."""
        if isinstance(value, FunctionSignature):
            return value
        if value is None:
            return cls()
        if isinstance(value, (tuple, list)):
            return cls(*value)
        return cls(parameter=value)


@dataclass(frozen=True)
class OperationFailed:
    """Expected failure of a provision function, returned instead of data.

    Attributes:
        message: Caller-facing error message
        data: Error data for the caller
        debug: Debug data for operators
        previous: Underlying exception, if any
    """

    message: str
    data: dict[str, Any] = field(default_factory=dict)
    debug: dict[str, Any] = field(default_factory=dict)
    previous: Optional[BaseException] = None

    def to_provider_result(self) -> ProviderResult:
        return ProviderResult(STATUS_ERROR, self.message, self.data, self.debug)


# =============================================================================
# Capabilities
# =============================================================================


class LogsDebugData:
    """Provider wants a logger set before its functions are called."""


class StoresFiles:
    """Provider wants a storage location set before its functions are called."""


class HasSystemInfo:
    """Provider wants system information set before its functions are called."""


# =============================================================================
# Base classes
# =============================================================================


class BaseCategory(ABC):
    """Abstract base class for all categories.

    Subclasses declare their provision functions in ``FUNCTIONS`` and
    describe themselves through ``about_category()``.
    """

    FUNCTIONS: ClassVar[dict[str, Any]] = {}

    _logger: Optional[logging.Logger] = None
    _system_info: Optional[SystemInfo] = None
    _storage: Any = None

    @classmethod
    @abstractmethod
    def about_category(cls) -> AboutData:
        """Describe this category."""

    @classmethod
    def get_function_signatures(cls) -> dict[str, FunctionSignature]:
        return {name: FunctionSignature.coerce(signature) for name, signature in cls.FUNCTIONS.items()}

    # =========================================================================
    # Results
    # =========================================================================

    def ok_result(self, message: str, data: Any = None, debug: Any = None) -> ResultData:
        return ResultData.create(data).set_message(message).set_debug(debug)

    def error_result(
        self,
        message: str,
        data: Any = None,
        debug: Any = None,
        previous: Optional[BaseException] = None,
    ) -> OperationFailed:
        return OperationFailed(message, _to_dict(data), _to_dict(debug), previous)

    # =========================================================================
    # Capabilities
    # =========================================================================

    def set_logger(self, provider_logger: logging.Logger) -> None:
        self._logger = provider_logger

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            raise RuntimeError("Logger instance only set if Provider or Category implement LogsDebugData")
        return self._logger

    def set_system_info(self, system_info: SystemInfo) -> None:
        self._system_info = system_info

    @property
    def system_info(self) -> SystemInfo:
        if self._system_info is None:
            raise RuntimeError("SystemInfo only set if Provider or Category implement HasSystemInfo")
        return self._system_info

    def set_storage(self, storage: Any) -> None:
        self._storage = storage

    @property
    def storage(self) -> Any:
        if self._storage is None:
            raise RuntimeError("Storage only set if Provider or Category implement StoresFiles")
        return self._storage

    # =========================================================================
    # HTTP
    # =========================================================================

    def http_client(self, debug_log: bool = False, **kwargs: Any) -> httpx.Client:
        """Create an HTTP client which records request history.

        Args:
            debug_log: Also log each request and response at DEBUG level,
                if this provider implements LogsDebugData
            **kwargs: Passed through to httpx.Client

        Returns:
            httpx.Client whose last exchange is available through
            last_request_debug()
        """
        hooks = kwargs.pop("event_hooks", {})
        request_hooks = [self._record_request] + list(hooks.get("request", []))
        response_hooks = [self._record_response] + list(hooks.get("response", []))

        if debug_log and isinstance(self, LogsDebugData):
            request_hooks.append(self._log_request)
            response_hooks.append(self._log_response)

        return httpx.Client(event_hooks={"request": request_hooks, "response": response_hooks}, **kwargs)

    def last_request_debug(self) -> Optional[dict[str, Any]]:
        """Debug data about the most recent HTTP exchange, if any."""
        history = self._http_history
        if not history:
            return None

        request, response = history[-1]["request"], history[-1]["response"]
        debug: dict[str, Any] = {
            "last_request": {
                "method": request.method,
                "url": str(request.url),
            },
            "last_response": None,
        }

        if response is not None:
            try:
                body = response.text
            except httpx.ResponseNotRead:
                body = ""
            if len(body) > DEBUG_BODY_LIMIT:
                body = body[:DEBUG_BODY_LIMIT] + "..."
            debug["last_response"] = {
                "http_code": response.status_code,
                "body": body,
            }

        return debug

    @property
    def _http_history(self) -> list[dict[str, Any]]:
        return self.__dict__.setdefault("_history", [])

    def _record_request(self, request: httpx.Request) -> None:
        self._http_history.append({"request": request, "response": None})

    def _record_response(self, response: httpx.Response) -> None:
        for exchange in reversed(self._http_history):
            if exchange["request"] is response.request:
                exchange["response"] = response
                return
        self._http_history.append({"request": response.request, "response": response})

    def _log_request(self, request: httpx.Request) -> None:
        self.logger.debug(f"HTTP request: {request.method} {request.url}")

    def _log_response(self, response: httpx.Response) -> None:
        response.read()
        self.logger.debug(
            f"HTTP response: {response.request.method} {response.request.url} "
            f"{response.status_code}\n{response.text}"
        )


class BaseProvider(ABC):
    """Abstract base class for all providers.

    Combine with exactly one category class. Providers declare their
    configuration data set in ``CONFIGURATION`` and receive the validated
    configuration on construction.
    """

    CONFIGURATION: ClassVar[DataSetReference] = EmptyData

    def __init__(self, configuration: Optional[DataSet] = None):
        """Initialize provider.

        Args:
            configuration: Validated instance of the CONFIGURATION data set
        """
        super().__init__()
        self.configuration = configuration

    @classmethod
    @abstractmethod
    def about_provider(cls) -> AboutData:
        """Describe this provider."""


def _to_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return dict(value) if isinstance(value, dict) else {}
