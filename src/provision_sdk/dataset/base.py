"""DataSet - validated view over provider input and output data.

A DataSet wraps raw values, validates them lazily against the rules its
subclass declares, and casts fields whose rules reference another DataSet
into nested instances.

Defining a data set:
    >>> class NameServer(DataSet):
    ...     @classmethod
    ...     def rules(cls) -> Rules:
    ...         return Rules({"host": ["required", "domain_name"], "ip": ["ip"]})
    ...
    ...     @property
    ...     def host(self) -> str:
    ...         return self.get("host")

Reading values:
    get(), all(), raw() and to_dict() validate first (once per construction
    or mutation) unless auto-validation is disabled; has() never validates.
"""

from __future__ import annotations

import copy
import json
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

from provision_sdk.dataset import rule_parser
from provision_sdk.dataset.rules import Rules
from provision_sdk.dataset.validator import Validator
from provision_sdk.types.exceptions import InvalidDataSetError, ValidationFailed

DataSetT = TypeVar("DataSetT", bound="DataSet")


class DataSet(ABC):
    """Abstract base for all data sets.

    Subclasses implement ``rules()`` and expose typed properties backed by
    ``get()``. Values can only be changed through named setters which call
    ``_set_value()``.
    """

    def __init__(self, values: Any = None, auto_validation: bool = True):
        self._raw_values: dict[str, Any] = _to_mapping(_to_plain(values))
        self._values: dict[str, Any] = copy.deepcopy(self._raw_values)
        self._validation_enabled = auto_validation
        self._validator: Optional[Validator] = None
        self._is_validated = False

        self._fill_nested_data_sets()

    @classmethod
    @abstractmethod
    def rules(cls) -> Rules:
        """Declare the validation rules of this data set."""

    @classmethod
    def get_rules(cls) -> Rules:
        """Get this class's rules, built once and reused across instances."""
        rules = cls.__dict__.get("_cached_rules")
        if rules is None:
            rules = cls.rules()
            cls._cached_rules = rules
        return rules

    @classmethod
    def create(cls: type[DataSetT], values: Any = None, auto_validation: bool = True) -> DataSetT:
        return cls(values, auto_validation)

    # =========================================================================
    # Accessors
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        self._auto_validate()
        return self._values[key] if key in self._values else default

    def has(self, key: str) -> bool:
        return key in self._values

    def all(self) -> dict[str, Any]:
        """Get all values, with nested data set fields cast to data sets."""
        self._auto_validate()
        return dict(self._values)

    def raw(self) -> dict[str, Any]:
        """Get all values as plain dicts and lists."""
        self._auto_validate()
        return copy.deepcopy(self._raw_values)

    def to_dict(self) -> dict[str, Any]:
        return self.raw()

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def copy(self: DataSetT, auto_validation: Optional[bool] = None) -> DataSetT:
        """Copy this data set, optionally switching auto-validation."""
        clone = copy.copy(self)
        clone._raw_values = copy.deepcopy(self._raw_values)
        clone._values = copy.deepcopy(self._values)
        if auto_validation is not None:
            clone._validation_enabled = auto_validation
        return clone

    # =========================================================================
    # Validation
    # =========================================================================

    def auto_validation(self, enabled: Optional[bool] = None) -> bool:
        """Get, and optionally set, whether reads validate first."""
        if enabled is not None:
            self._validation_enabled = enabled
        return self._validation_enabled

    def validate(self) -> None:
        """Validate the raw values against the expanded rules.

        Raises:
            InvalidDataSetError: Carrying the field error map
        """
        try:
            self._get_validator().validate()
            self._is_validated = True
        except ValidationFailed as e:
            self._is_validated = False
            raise InvalidDataSetError(e.errors) from e

    def is_validated(self) -> bool:
        return self._is_validated

    def validate_if_not_yet_validated(self) -> None:
        if not self._is_validated:
            self.validate()

    def errors(self) -> dict[str, list[str]]:
        """Validate, returning the field error map instead of raising."""
        try:
            self.validate()
            return {}
        except InvalidDataSetError as e:
            return e.errors()

    def _auto_validate(self) -> None:
        if self._validation_enabled:
            self.validate_if_not_yet_validated()

    def _get_validator(self) -> Validator:
        if self._validator is None:
            self._validator = self._make_validator(self._raw_values, self.get_rules())
        return self._validator

    def _make_validator(self, data: dict[str, Any], rules: Rules) -> Validator:
        return Validator(data, rules.expand())

    # =========================================================================
    # Mutation and casting
    # =========================================================================

    def _set_value(self, key: str, value: Any) -> None:
        """Set a value, re-casting it and resetting validation state."""
        value = _to_plain(value)

        self._raw_values[key] = value
        self._values[key] = self._cast_value(key, copy.deepcopy(value))

        self._validator = None
        self._is_validated = False

    def _fill_nested_data_sets(self) -> None:
        rules = self.get_rules()

        for field, field_rules in rules.raw().items():
            for rule in rule_parser.explode_rules(field_rules):
                if not rule_parser.is_data_set(rule):
                    continue

                if rule_parser.field_is_array(field):
                    field = rule_parser.unarray_field(field)
                    data = rule_parser.data_get(self._values, field)
                    if isinstance(data, list):
                        rule_parser.data_set(self._values, field, [self._cast_each(item, rule) for item in data])
                    elif isinstance(data, dict):
                        rule_parser.data_set(
                            self._values, field, {key: self._cast_each(item, rule) for key, item in data.items()}
                        )
                else:
                    data = rule_parser.data_get(self._values, field)
                    if isinstance(data, dict):
                        rule_parser.data_set(self._values, field, self._cast_to_data_set(data, rule))
                break

    def _cast_value(self, key: str, value: Any) -> Any:
        rules = self.get_rules()

        for rule_key in (key, f"{key}.*"):
            for rule in rules.raw(rule_key):
                if rule_parser.is_data_set(rule) and isinstance(value, (dict, list)) and value:
                    if rule_parser.field_is_array(rule_key):
                        if isinstance(value, dict):
                            return {k: self._cast_each(item, rule) for k, item in value.items()}
                        return [self._cast_each(item, rule) for item in value]
                    return self._cast_to_data_set(value, rule)

        return value

    def _cast_each(self, data: Any, data_set_class: type[DataSet]) -> Any:
        return self._cast_to_data_set(data, data_set_class) if isinstance(data, dict) else data

    def _cast_to_data_set(self, data: Any, data_set_class: type[DataSet]) -> DataSet:
        return data_set_class.create(data, False)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._raw_values!r})"


def _to_plain(value: Any) -> Any:
    """Convert data sets and objects with ``to_dict()`` into plain data."""
    if isinstance(value, DataSet):
        return copy.deepcopy(value._raw_values)
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return _to_plain(value.to_dict())
    return value


def _to_mapping(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {str(index): item for index, item in enumerate(value)}
    return {"0": value}
