"""Data sets shared by every category and provider."""

from __future__ import annotations

from typing import Any, Optional

from provision_sdk.dataset.base import DataSet
from provision_sdk.dataset.rules import Rules
from provision_sdk.types.result import STATUS_OK, ProviderResult


class EmptyData(DataSet):
    """Data set without any fields or rules."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules()


class ResultData(DataSet):
    """Successful provision function return data.

    Besides its values a ResultData carries the message and debug payload of
    the ok Result it converts into. Return types with their own fields extend
    this class and declare ``rules()``.

    Example:
        >>> return ResultData.create({"domain": "example.com"}).set_message("Domain registered")
    """

    DEFAULT_MESSAGE = "Operation completed successfully"

    def __init__(self, values: Any = None, auto_validation: bool = True):
        self._message = self.DEFAULT_MESSAGE
        self._debug: Optional[dict[str, Any]] = None
        super().__init__(values, auto_validation)

    @classmethod
    def rules(cls) -> Rules:
        return Rules()

    @property
    def message(self) -> str:
        return self._message

    @property
    def debug(self) -> Optional[dict[str, Any]]:
        return self._debug

    def set_message(self, message: Any) -> ResultData:
        """Set the result message; empty messages are ignored."""
        message = str(message) if message is not None else ""
        if message:
            self._message = message
        return self

    def set_data(self, data: Any) -> ResultData:
        """Replace all values, resetting validation state."""
        DataSet.__init__(self, data, self._validation_enabled)
        return self

    def get_data(self) -> dict[str, Any]:
        return self.to_dict()

    def set_debug(self, debug: Any) -> ResultData:
        if hasattr(debug, "to_dict"):
            debug = debug.to_dict()
        self._debug = dict(debug) if isinstance(debug, dict) else None
        return self

    def to_provider_result(self) -> ProviderResult:
        return ProviderResult(STATUS_OK, self._message, self.get_data(), self._debug)


class AboutData(DataSet):
    """Display information about a category or provider."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "name": ["string", "required", "max:50"],
            "description": ["string", "required", "max:300"],
            "logo_url": ["nullable", "url"],
            "icon": ["nullable", "string"],
        })

    @property
    def name(self) -> Optional[str]:
        return self.get("name")

    @property
    def description(self) -> Optional[str]:
        return self.get("description")

    @property
    def logo_url(self) -> Optional[str]:
        return self.get("logo_url")

    @property
    def icon(self) -> Optional[str]:
        return self.get("icon")

    def set_name(self, name: str) -> AboutData:
        self._set_value("name", name)
        return self

    def set_description(self, description: str) -> AboutData:
        self._set_value("description", description)
        return self

    def set_logo_url(self, url: Optional[str]) -> AboutData:
        self._set_value("logo_url", url)
        return self

    def set_icon(self, icon: Optional[str]) -> AboutData:
        self._set_value("icon", icon)
        return self


class SystemInfo(DataSet):
    """Runtime information handed to providers which ask for it."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "outgoing_ips": ["required", "array"],
            "outgoing_ips.*": ["required", "ip"],
        })

    @property
    def outgoing_ips(self) -> list[str]:
        return self.get("outgoing_ips") or []


class StorageConfiguration(DataSet):
    """Location and encryption secret of a provider's file storage."""

    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "base_path": ["string", "required"],
            "secret_key": ["string", "required"],
        })

    @property
    def base_path(self) -> str:
        return self.get("base_path")

    @property
    def secret_key(self) -> str:
        return self.get("secret_key")
