"""Provision Types - Result Model.

This module defines the normalized outcome of a provision function.
Every job, successful or not, ends in exactly one Result.

Normalization (applied on every construction):
    1. status is lowercased and restricted to "ok" or "error"
    2. message is defaulted per status when empty, then capitalized
    3. empty data collapses to None
    4. debug entries which are empty or malformed are dropped

Serialization:
    Result.to_dict() / to_json() produce the wire shape, and
    Result.create_from_dict() / create_from_json() read it back.
"""

from __future__ import annotations

import json
import traceback
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING, Any, Optional, Union

from provision_sdk.types.exceptions import InvalidDataSetError, ValidationFailed

if TYPE_CHECKING:
    from provision_sdk.provider.job import ProviderJob


# Frames from this module mark where a job handed control to a provider
JOB_MODULE = "provision_sdk.provider.job"

# Trace length when an exception did not surface through a job
MAX_TRACE_FRAMES = 5


class ResultStatus(Enum):
    """Result status.

    Attributes:
        OK: Function completed successfully
        ERROR: Function failed; see message, data and debug
    """
    OK = "ok"
    ERROR = "error"


STATUS_OK = ResultStatus.OK.value
STATUS_ERROR = ResultStatus.ERROR.value


class Result:
    """Normalized success/error outcome with optional data and debug payloads.

    Status, message and data are fixed at construction. Debug data and the
    attached exception change only through the chained enrichment methods
    (``set_error_id``, ``set_exception`` and the ``with_*`` family), which
    return the same instance.

    Example:
        >>> result = Result("OK", "domain registered", {"domain": "example.com"})
        >>> result.get_status()
        'ok'
        >>> result.get_message()
        'Domain registered'
    """

    DEFAULT_OK_MESSAGE = "Success"
    DEFAULT_ERROR_MESSAGE = "Unknown provision system error"
    UNKNOWN_STATUS_MESSAGE = "Result data unknown"

    def __init__(
        self,
        status: Union[str, ResultStatus, None],
        message: Optional[str] = None,
        data: Any = None,
        debug: Any = None,
    ):
        if isinstance(status, ResultStatus):
            status = status.value
        self._status = status if isinstance(status, str) else ""
        self._message = message
        self._data = data
        self._debug = debug
        self._exception: Optional[BaseException] = None

        self._standardize()

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def create_error_result(
        cls,
        message: str,
        data: Any = None,
        error_id: Optional[str] = None,
    ) -> Result:
        return cls(STATUS_ERROR, message, data).set_error_id(error_id)

    @classmethod
    def create_from_json(cls, payload: str) -> Result:
        try:
            decoded = json.loads(payload)
        except (json.JSONDecodeError, TypeError):
            decoded = {}
        return cls.create_from_dict(decoded if isinstance(decoded, dict) else {})

    @classmethod
    def create_from_dict(cls, data: dict[str, Any]) -> Result:
        """Create a Result from its wire shape, tolerating malformed fields."""
        status = data.get("status")
        message = data.get("message")
        return cls(
            status if isinstance(status, str) else "",
            message if isinstance(message, str) else "",
            _wrap(data.get("data")),
            _wrap(data.get("debug")),
        )

    @classmethod
    def create_from_exception(cls, exception: BaseException, error_id: Optional[str] = None) -> Result:
        return cls.create_error_result(
            "Critical provision system error encountered", None, error_id
        ).with_exception_debug(exception)

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_status(self) -> str:
        return self._status

    def get_message(self) -> str:
        return self._message

    def get_data(self) -> Any:
        return self._data

    def get_debug(self) -> Optional[dict[str, Any]]:
        return self._debug

    def get_exception(self) -> Optional[BaseException]:
        return self._exception

    def get_error_id(self) -> Optional[str]:
        return (self._debug or {}).get("error_id")

    def is_ok(self) -> bool:
        return self._status == STATUS_OK

    def is_error(self) -> bool:
        return self._status == STATUS_ERROR

    # =========================================================================
    # Enrichment
    # =========================================================================

    def set_error_id(self, error_id: Optional[str]) -> Result:
        """Store a trimmed error id in debug, or remove it when blank."""
        error_id = (error_id or "").strip()
        debug = dict(self._debug or {})

        if error_id:
            debug["error_id"] = error_id
        else:
            debug.pop("error_id", None)

        self._debug = debug or None
        return self

    def set_exception(self, exception: BaseException) -> Result:
        """Keep the exception for get_exception() without adding debug data."""
        self._exception = exception
        return self

    def with_exception_debug(self, exception: BaseException) -> Result:
        """Attach a formatted snapshot of the root exception in the chain."""
        self.set_exception(exception)

        root = root_exception(exception)
        self._set_debug("exception", format_exception(root))

        return self.with_debug_message(f"Encountered exception: {type(root).__name__}")

    def with_debug_message(self, message: str) -> Result:
        self._set_debug("message", message)
        return self

    def _set_debug(self, key: str, value: Any) -> None:
        debug = dict(self._debug or {})
        debug[key] = value
        self._debug = debug

    # =========================================================================
    # Normalization
    # =========================================================================

    def _standardize(self) -> None:
        self._standardize_status()
        self._standardize_message()
        self._standardize_data()
        self._standardize_debug()

    def _standardize_status(self) -> None:
        self._status = self._status.lower()

        if self._status not in (STATUS_OK, STATUS_ERROR):
            self._status = STATUS_ERROR
            if not self._message:
                self._message = self.UNKNOWN_STATUS_MESSAGE

    def _standardize_message(self) -> None:
        if not self._message or not isinstance(self._message, str):
            self._message = (
                self.DEFAULT_OK_MESSAGE if self._status == STATUS_OK else self.DEFAULT_ERROR_MESSAGE
            )

        self._message = self._message[0].upper() + self._message[1:]

    def _standardize_data(self) -> None:
        self._data = _wrap(self._data) or None

    def _standardize_debug(self) -> None:
        debug = _wrap(self._debug)
        if not isinstance(debug, dict):
            debug = {"data": debug} if debug else {}

        if debug:
            error_id = debug.get("error_id")
            if not error_id or not isinstance(error_id, str):
                debug.pop("error_id", None)

            message = debug.get("message")
            if not message or not isinstance(message, str):
                debug.pop("message", None)

            data = debug.get("data")
            if not data or not isinstance(data, (dict, list)):
                debug.pop("data", None)

            validation_errors = debug.get("validation_errors")
            if not validation_errors or not isinstance(validation_errors, dict):
                debug.pop("validation_errors", None)

            exception = debug.get("exception")
            if isinstance(exception, BaseException):
                self.set_exception(exception)
                exception = format_exception(exception)
                debug["exception"] = exception

            if not exception or not isinstance(exception, dict):
                debug.pop("exception", None)

        self._debug = debug or None

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self._status,
            "message": self._message,
            "data": self._data,
            "debug": self._debug,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self._status!r}, message={self._message!r})"


class ProviderResult(Result):
    """Result of a provider function, produced by a ProviderJob.

    Adds provider-oriented default messages and the debug entries a job
    attaches: ``provider_output``, ``provider_job`` and ``execution_time``.
    """

    DEFAULT_ERROR_MESSAGE = "Unknown provider function error"
    UNKNOWN_STATUS_MESSAGE = "Unexpected provider function output"

    @classmethod
    def create_from_provider_output(cls, output: Any, output_debug: bool = True) -> ProviderResult:
        """Create a result from whatever a provider function returned."""
        wrapped = _wrap(output)
        result = cls.create_from_dict(wrapped if isinstance(wrapped, dict) else {})

        if output_debug:
            return result.with_provider_output_debug(output)

        return result

    @classmethod
    def create_from_provider_exception(
        cls, exception: BaseException, error_id: Optional[str] = None
    ) -> ProviderResult:
        return cls.create_error_result(
            "Critical provider error encountered", None, error_id
        ).with_exception_debug(exception)

    def with_provider_job_debug(self, job: ProviderJob) -> ProviderResult:
        self._set_debug("provider_job", format_provider_job(job))
        return self

    def with_provider_output_debug(self, output: Any) -> ProviderResult:
        """Attach the raw provider output, JSON encoded."""
        if hasattr(output, "to_dict"):
            output = output.to_dict()
        try:
            encoded = json.dumps(output, default=str)
        except (TypeError, ValueError):
            encoded = "null"

        self._set_debug("provider_output", encoded)
        return self

    def with_execution_time_debug(self, execution_time: float) -> ProviderResult:
        self._set_debug("execution_time", round(execution_time, 3))
        return self

    def with_validation_errors_debug(self, errors: dict[str, list[str]]) -> ProviderResult:
        if errors:
            self._set_debug("validation_errors", errors)
        return self

    def _standardize_debug(self) -> None:
        debug = _wrap(self._debug)

        if isinstance(debug, dict) and debug:
            provider_data = debug.get("provider_data")
            if not provider_data or not isinstance(provider_data, dict):
                debug.pop("provider_data", None)

            provider_job = debug.get("provider_job")
            if hasattr(provider_job, "provider") and hasattr(provider_job, "function"):
                provider_job = format_provider_job(provider_job)
                debug["provider_job"] = provider_job

            if not provider_job or not isinstance(provider_job, dict):
                debug.pop("provider_job", None)

            if not isinstance(debug.get("provider_output"), str):
                debug.pop("provider_output", None)

        self._debug = debug
        super()._standardize_debug()


# =============================================================================
# Formatting helpers
# =============================================================================


def root_exception(exception: BaseException) -> BaseException:
    """Follow explicit causes down to the first exception in the chain."""
    while exception.__cause__ is not None:
        exception = exception.__cause__
    return exception


def format_exception(exception: BaseException) -> dict[str, Any]:
    """Snapshot an exception for debug output.

    Call arguments and local variables are never included.
    """
    frames = list(traceback.walk_tb(exception.__traceback__))
    file, line = None, None
    if frames:
        frame, line = frames[-1]
        file = frame.f_code.co_filename

    return {
        "type": type(exception).__name__,
        "message": str(exception),
        "code": _exception_code(exception),
        "file": file,
        "line": line,
        "validation_errors": _validation_errors(exception),
        "trace": trim_stack_trace(exception.__traceback__),
    }


def trim_stack_trace(tb: Optional[TracebackType]) -> list[dict[str, Any]]:
    """Format a traceback innermost frame first.

    Frames are cut at the first frame belonging to the job pipeline, so only
    provider-side frames remain. Without such a frame the trace is capped.
    """
    trace = []
    trimmed = False

    for frame, lineno in reversed(list(traceback.walk_tb(tb))):
        module = frame.f_globals.get("__name__")
        if module == JOB_MODULE:
            trimmed = True
            break

        trace.append({
            "file": frame.f_code.co_filename,
            "line": lineno,
            "module": module,
            "function": getattr(frame.f_code, "co_qualname", frame.f_code.co_name),
        })

    if not trimmed:
        trace = trace[:MAX_TRACE_FRAMES]

    return trace


def format_provider_job(job: ProviderJob) -> dict[str, Any]:
    instance = job.provider.instance
    return {
        "provider": f"{type(instance).__module__}:{type(instance).__qualname__}",
        "function": job.function,
    }


def _exception_code(exception: BaseException) -> int:
    for attribute in ("code", "errno"):
        code = getattr(exception, attribute, None)
        if isinstance(code, int) and not isinstance(code, bool):
            return code
    return 0


def _validation_errors(exception: BaseException) -> Optional[dict[str, list[str]]]:
    if isinstance(exception, InvalidDataSetError):
        return exception.errors()
    if isinstance(exception, ValidationFailed):
        return exception.errors
    return None


def _wrap(value: Any) -> Any:
    """Coerce a payload into a dict or list, the way results store them."""
    if value is None:
        return {}
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]
