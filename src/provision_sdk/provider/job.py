"""Provider Job - one invocation of a provision function.

A job validates the parameters, calls the provider, classifies whatever
happened and normalizes it into exactly one ProviderResult:

    ok         The function returned data which validated
    operation  The function returned OperationFailed or raised
               ProvisionFunctionError
    internal   The function raised any other Exception
    critical   The function raised a defect-class exception (TypeError,
               AttributeError, ...) or a CriticalProviderError
    validation Parameters or return data failed validation

Usage:
    >>> job = provider.make_job("register", {"sld": "example", "tld": "com", ...})
    >>> result = job.execute()
    >>> result.is_ok()
    True

Provider frames are kept in exception debug traces; frames from this module
and its callers are cut.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Optional

from provision_sdk.dataset import DataSet
from provision_sdk.provider.base import OperationFailed
from provision_sdk.types.exceptions import (
    CriticalProviderError,
    InvalidDataSetError,
    InvalidFunctionParameterDataError,
    InvalidFunctionReturnDataError,
    InvalidProviderJob,
    ProviderJobError,
    ProvisionFunctionError,
)
from provision_sdk.types.result import STATUS_ERROR, STATUS_OK, ProviderResult

if TYPE_CHECKING:
    from provision_sdk.provider.factory import Provider
    from provision_sdk.registry.registers import FunctionRegister

logger = logging.getLogger(__name__)

# Exceptions which indicate a defect in provider code rather than a failed operation
CRITICAL_EXCEPTIONS: tuple[type[BaseException], ...] = (
    TypeError,
    AttributeError,
    NameError,
    AssertionError,
    NotImplementedError,
    RecursionError,
    MemoryError,
    ImportError,
    SyntaxError,
    CriticalProviderError,
)

INTERNAL_ERROR_MESSAGE = "Internal provision provider error"


def is_critical(error: BaseException) -> bool:
    """Whether an exception raised by provider code counts as critical."""
    return isinstance(error, CRITICAL_EXCEPTIONS)


class ProviderJob:
    """Executes one provision function on a provider instance.

    Attributes:
        provider: The Provider (register and instance) to call
        function: Name of the provision function
    """

    def __init__(self, provider: Provider, function: str, parameter_data: Any = None):
        """Initialize job.

        Args:
            provider: Provider to run the function on
            function: Provision function name
            parameter_data: Parameters as a data set, dict, or None

        Raises:
            InvalidProviderJob: If the provider's category has no such function
        """
        self.provider = provider
        self.function = function

        self._parameter_data = parameter_data
        self._return_data: Optional[DataSet] = None
        self._result: Optional[ProviderResult] = None

        if not self.provider.register.has_function(function):
            raise InvalidProviderJob.for_invalid_function(self)

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_function_register(self) -> FunctionRegister:
        return self.provider.register.get_function(self.function)

    def get_parameter_data(self) -> DataSet:
        """Get the parameters, coerced to the function's parameter data set."""
        data_set_class = self.get_function_register().parameter.data_set_class

        if not isinstance(self._parameter_data, data_set_class):
            self._parameter_data = data_set_class.create(self._parameter_data)

        return self._parameter_data

    def get_return_data(self) -> Optional[DataSet]:
        """Get the provider's return data, executing the job if needed."""
        if self._result is None:
            self.execute()
        return self._return_data

    def get_result(self) -> ProviderResult:
        return self.execute()

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self) -> ProviderResult:
        """Run the job once and return its result.

        Repeated calls return the same result without calling the provider
        again. Exceptions which are not Exception subclasses (such as
        KeyboardInterrupt) propagate.
        """
        if self._result is not None:
            return self._result

        logger.debug(f"Executing {self.function}() on provider {self.provider.register.identifier}")

        execution_time = 0.0
        try:
            self._validate_parameter_data()

            started = time.perf_counter()
            try:
                outcome = self._call_function()
            finally:
                execution_time = time.perf_counter() - started

            if isinstance(outcome, OperationFailed):
                raise self._operation_failed_error(outcome)

            self._return_data = self._coerce_return_data(outcome)
            self._validate_return_data()

            result = self._create_success_result(self._return_data)
        except Exception as e:
            result = self._create_error_result(e)

        self._result = result.with_execution_time_debug(execution_time)
        return self._result

    def _call_function(self) -> Any:
        parameters = self.get_parameter_data()
        try:
            return getattr(self.provider.instance, self.function)(parameters)
        except ProvisionFunctionError:
            raise
        except Exception as e:
            if is_critical(e):
                logger.error(f"Critical error in {self._describe()}: {type(e).__name__}: {e}")
                raise CriticalProviderError().with_provider_job(self) from e

            logger.warning(f"Internal error in {self._describe()}: {type(e).__name__}: {e}")
            raise ProvisionFunctionError(INTERNAL_ERROR_MESSAGE).with_provider_job(self) from e

    def _operation_failed_error(self, outcome: OperationFailed) -> ProvisionFunctionError:
        error = ProvisionFunctionError(outcome.message, outcome.data, outcome.debug)
        error.__cause__ = outcome.previous
        return error.with_provider_job(self)

    def _coerce_return_data(self, value: Any) -> DataSet:
        data_set_class = self.get_function_register().return_.data_set_class

        if type(value) is data_set_class:
            return value

        return data_set_class.create(value)

    def _validate_parameter_data(self) -> None:
        try:
            self.get_parameter_data().validate_if_not_yet_validated()
        except InvalidDataSetError as e:
            raise InvalidFunctionParameterDataError.from_invalid_data_set(e)

    def _validate_return_data(self) -> None:
        try:
            self._return_data.validate_if_not_yet_validated()
        except InvalidDataSetError as e:
            raise InvalidFunctionReturnDataError.from_invalid_data_set(e)

    # =========================================================================
    # Results
    # =========================================================================

    def _create_success_result(self, return_data: DataSet) -> ProviderResult:
        to_provider_result = getattr(return_data, "to_provider_result", None)
        if callable(to_provider_result):
            return to_provider_result()

        return ProviderResult(STATUS_OK, None, return_data.to_dict())

    def _create_error_result(self, error: Exception) -> ProviderResult:
        if isinstance(error, InvalidFunctionParameterDataError):
            error.set_error_prefix("parameters")
            errors = error.errors()
            result = ProviderResult.create_error_result(str(error), {"validation_errors": errors})
            result.with_validation_errors_debug(errors)
        elif isinstance(error, InvalidFunctionReturnDataError):
            error.set_error_prefix("provider_output")
            result = ProviderResult.create_error_result(str(error))
            result.with_validation_errors_debug(error.errors())
        elif isinstance(error, ProvisionFunctionError):
            result = ProviderResult(STATUS_ERROR, error.message, error.data, error.debug)
        elif isinstance(error, ProviderJobError):
            result = ProviderResult.create_error_result(str(error))
        else:
            logger.exception(f"Unexpected error while executing {self._describe()}")
            result = ProviderResult.create_error_result("Critical provision system error encountered")

        if self._return_data is not None:
            result.with_provider_output_debug(self._return_data.copy(auto_validation=False))

        result.with_exception_debug(error)
        result.with_provider_job_debug(self)
        return result

    def _describe(self) -> str:
        return f"{self.provider.register.identifier}.{self.function}()"

    def __repr__(self) -> str:
        return f"ProviderJob(provider={self.provider.register.identifier!r}, function={self.function!r})"
