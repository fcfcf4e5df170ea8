"""Rule engine for data set validation.

Runs string rules such as ``required|string|max:50`` over nested dict/list
data and collects human readable messages per field path.

Rule semantics:
    1. Implicit rules (``required``, ``required_with``, ``present`` ...) always
       run; other rules are skipped for absent or blank values
    2. ``nullable`` skips non-implicit rules for None values
    3. ``sometimes`` skips the field entirely when it is absent
    4. A field stops validating after a failed implicit rule, or after any
       failure when it carries ``bail``

Nested data sets:
    A field carrying the nested data set marker rule is validated by its own
    child Validator over the nested mapping, or over a list keyed by index.
    The child's errors are merged back under the field path once the parent
    run has finished.

Usage:
    >>> validator = Validator({"sld": "example"}, {"sld": ["required", "alpha_dash"]})
    >>> validator.passes()
    True
"""

from __future__ import annotations

import ipaddress
import re
from datetime import date, datetime
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from provision_sdk.dataset import rule_parser
from provision_sdk.dataset.rule_parser import NESTED_DATA_SET_RULE, normalize_rule_name
from provision_sdk.types.exceptions import ValidationFailed

# (field, value, arguments, validator) -> passes
Extension = Callable[[str, Any, list, "Validator"], bool]

# (message, field, rule, arguments, validator) -> message
Replacer = Callable[[str, str, str, list, "Validator"], str]


# =============================================================================
# Rule tables
# =============================================================================

IMPLICIT_RULES = frozenset({
    "accepted",
    "filled",
    "present",
    "required",
    "required_if",
    "required_unless",
    "required_with",
    "required_with_all",
    "required_without",
    "required_without_all",
})

MARKER_RULES = frozenset({"bail", "nullable", "sometimes", NESTED_DATA_SET_RULE})

NUMERIC_RULES = ("numeric", "integer")

URL_SCHEMES = frozenset({"http", "https", "ftp", "ftps", "sftp", "ssh", "ws", "wss", "git", "mailto"})

MESSAGES: dict[str, Any] = {
    "accepted": "The :attribute must be accepted.",
    "alpha": "The :attribute must only contain letters.",
    "alpha_dash": "The :attribute must only contain letters, numbers, dashes and underscores.",
    "alpha_num": "The :attribute must only contain letters and numbers.",
    "array": "The :attribute must be an array.",
    "between": {
        "numeric": "The :attribute must be between :min and :max.",
        "string": "The :attribute must be between :min and :max characters.",
        "array": "The :attribute must have between :min and :max items.",
    },
    "boolean": "The :attribute field must be true or false.",
    "confirmed": "The :attribute confirmation does not match.",
    "date": "The :attribute is not a valid date.",
    "different": "The :attribute and :other must be different.",
    "digits": "The :attribute must be :digits digits.",
    "digits_between": "The :attribute must be between :min and :max digits.",
    "email": "The :attribute must be a valid email address.",
    "ends_with": "The :attribute must end with one of the following: :values.",
    "filled": "The :attribute field must have a value.",
    "gt": {
        "numeric": "The :attribute must be greater than :value.",
        "string": "The :attribute must be greater than :value characters.",
        "array": "The :attribute must have more than :value items.",
    },
    "gte": {
        "numeric": "The :attribute must be greater than or equal to :value.",
        "string": "The :attribute must be greater than or equal to :value characters.",
        "array": "The :attribute must have :value items or more.",
    },
    "in": "The selected :attribute is invalid.",
    "integer": "The :attribute must be an integer.",
    "ip": "The :attribute must be a valid IP address.",
    "ipv4": "The :attribute must be a valid IPv4 address.",
    "ipv6": "The :attribute must be a valid IPv6 address.",
    "lt": {
        "numeric": "The :attribute must be less than :value.",
        "string": "The :attribute must be less than :value characters.",
        "array": "The :attribute must have less than :value items.",
    },
    "lte": {
        "numeric": "The :attribute must be less than or equal to :value.",
        "string": "The :attribute must be less than or equal to :value characters.",
        "array": "The :attribute must not have more than :value items.",
    },
    "max": {
        "numeric": "The :attribute must not be greater than :max.",
        "string": "The :attribute must not be greater than :max characters.",
        "array": "The :attribute must not have more than :max items.",
    },
    "min": {
        "numeric": "The :attribute must be at least :min.",
        "string": "The :attribute must be at least :min characters.",
        "array": "The :attribute must have at least :min items.",
    },
    "not_in": "The selected :attribute is invalid.",
    "not_regex": "The :attribute format is invalid.",
    "numeric": "The :attribute must be a number.",
    "present": "The :attribute field must be present.",
    "regex": "The :attribute format is invalid.",
    "required": "The :attribute field is required.",
    "required_if": "The :attribute field is required when :other is :value.",
    "required_unless": "The :attribute field is required unless :other is in :values.",
    "required_with": "The :attribute field is required when :values is present.",
    "required_with_all": "The :attribute field is required when :values are present.",
    "required_without": "The :attribute field is required when :values is not present.",
    "required_without_all": "The :attribute field is required when none of :values are present.",
    "same": "The :attribute and :other must match.",
    "size": {
        "numeric": "The :attribute must be :size.",
        "string": "The :attribute must be :size characters.",
        "array": "The :attribute must contain :size items.",
    },
    "starts_with": "The :attribute must start with one of the following: :values.",
    "string": "The :attribute must be a string.",
    "url": "The :attribute must be a valid URL.",
    "uuid": "The :attribute must be a valid UUID.",
}

_INTEGER_PATTERN = re.compile(r"\s*[+-]?\d+\s*")
_NUMERIC_PATTERN = re.compile(r"\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*")
_EMAIL_PATTERN = re.compile(r"[^@\s]+@([^@\s.]+\.)*[^@\s.]+")
_UUID_PATTERN = re.compile(r"[\da-fA-F]{8}-[\da-fA-F]{4}-[\da-fA-F]{4}-[\da-fA-F]{4}-[\da-fA-F]{12}")
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%Y/%m/%d")
_PATTERN_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE, "u": 0}
_CLOSING_DELIMITERS = {"(": ")", "{": "}", "[": "]", "<": ">"}


class Validator:
    """Validates data against expanded rules.

    Attributes:
        data: The data under validation
        rules: Concrete field rules, after wildcard expansion and with nested
            data set fields carved out into child validators
        custom_messages: Message overrides keyed by ``field.rule`` or ``rule``
        custom_attributes: Display names keyed by field path
    """

    _extensions: dict[str, Extension] = {}
    _extension_messages: dict[str, str] = {}
    _replacers: dict[str, Replacer] = {}

    def __init__(
        self,
        data: Any,
        rules: Any,
        messages: Optional[dict[str, str]] = None,
        attributes: Optional[dict[str, str]] = None,
    ):
        self.data: dict[str, Any] = _as_mapping(data)
        self.custom_messages = dict(messages or {})
        self.custom_attributes = dict(attributes or {})

        self._after_hooks: list[Callable[[Validator], None]] = []
        self._errors: dict[str, list[str]] = {}
        self._failed_rules: dict[str, dict[str, list[str]]] = {}
        self._ran = False

        if hasattr(rules, "expand"):
            rules = rules.expand()
        rules = {field: rule_parser.explode_rules(field_rules) for field, field_rules in rules.items()}
        rules = rule_parser.expand_wildcard_rules(rules, self.data)

        for field in list(rules):
            if field not in rules:
                continue
            if NESTED_DATA_SET_RULE in rules[field]:
                rules[field] = [rule for rule in rules[field] if rule != NESTED_DATA_SET_RULE]
                rules = self._add_nested_validator(field, rules)

        self.rules: dict[str, list] = rules

    # =========================================================================
    # Extension registry
    # =========================================================================

    @classmethod
    def extend(cls, name: str, extension: Extension, message: Optional[str] = None) -> None:
        """Register a custom rule.

        Args:
            name: Rule name; dashes and underscores are interchangeable
            extension: Called as ``extension(field, value, arguments, validator)``
                and returns whether the value passes. It may also record its
                own failures through ``validator.add_failure()``.
            message: Default message for failures of this rule
        """
        name = normalize_rule_name(name)
        cls._extensions[name] = extension
        if message:
            cls._extension_messages[name] = message

    @classmethod
    def replacer(cls, name: str, replacer: Replacer) -> None:
        cls._replacers[normalize_rule_name(name)] = replacer

    @classmethod
    def has_rule(cls, name: str) -> bool:
        name = normalize_rule_name(name)
        return name in MARKER_RULES or name in cls._extensions or hasattr(cls, f"_validate_{name}")

    # =========================================================================
    # Running
    # =========================================================================

    def after(self, callback: Callable[[Validator], None]) -> Validator:
        """Register a callback to run once all rules have been applied."""
        self._after_hooks.append(callback)
        return self

    def passes(self) -> bool:
        return not self.errors()

    def fails(self) -> bool:
        return not self.passes()

    def errors(self) -> dict[str, list[str]]:
        """Get the field error map, running the rules on first use."""
        if not self._ran:
            self._run()
        return {field: list(messages) for field, messages in self._errors.items()}

    def failed(self) -> dict[str, dict[str, list[str]]]:
        """Get the failed rules and their arguments per field."""
        self.errors()
        return {field: dict(rules) for field, rules in self._failed_rules.items()}

    def validate(self) -> None:
        """Run the rules.

        Raises:
            ValidationFailed: If any field failed its rules
        """
        errors = self.errors()
        if errors:
            raise ValidationFailed(errors)

    def get_data(self) -> dict[str, Any]:
        return self.data

    def get_value(self, field: str) -> Any:
        return rule_parser.data_get(self.data, field)

    def add_failure(self, field: str, rule: str, arguments: Optional[list] = None) -> None:
        """Record a failed rule along with its message."""
        rule = normalize_rule_name(rule)
        arguments = list(arguments or [])
        self._failed_rules.setdefault(field, {})[rule] = arguments
        self.add_error(field, self._make_message(field, rule, arguments))

    def add_error(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def merge_errors(self, errors: dict[str, list[str]]) -> None:
        for field, messages in errors.items():
            for message in messages:
                self.add_error(field, message)

    def _run(self) -> None:
        self._ran = True

        for field, field_rules in self.rules.items():
            self._validate_field(field, field_rules)

        for hook in self._after_hooks:
            hook(self)

    def _validate_field(self, field: str, field_rules: list) -> None:
        parsed = [
            (normalize_rule_name(name), arguments)
            for name, arguments in (rule_parser.parse_rule(rule) for rule in field_rules if isinstance(rule, str) and rule)
        ]
        names = {name for name, _ in parsed}
        present, value = rule_parser.lookup(self.data, field)

        if "sometimes" in names and not present:
            return

        for name, arguments in parsed:
            if name in MARKER_RULES:
                continue
            if not self._is_validatable(name, value, present, names):
                continue

            if not self._passes(field, name, arguments, value):
                self.add_failure(field, name, arguments)

            if self._should_stop(field, names):
                break

    def _is_validatable(self, rule: str, value: Any, present: bool, names: set[str]) -> bool:
        if rule in IMPLICIT_RULES:
            return True
        if not present:
            return False
        if isinstance(value, str) and not value.strip():
            return False
        if value is None and "nullable" in names:
            return False
        return True

    def _should_stop(self, field: str, names: set[str]) -> bool:
        if "bail" in names and field in self._errors:
            return True
        return any(rule in IMPLICIT_RULES for rule in self._failed_rules.get(field, {}))

    def _passes(self, field: str, rule: str, arguments: list, value: Any) -> bool:
        extension = self._extensions.get(rule)
        if extension is not None:
            return bool(extension(field, value, arguments, self))

        method = getattr(self, f"_validate_{rule}", None)
        if method is None:
            raise ValueError(f"Unknown validation rule: {rule}")

        return bool(method(field, value, arguments))

    def _add_nested_validator(self, field: str, rules: dict[str, list]) -> dict[str, list]:
        """Carve a nested data set field out into its own validator.

        Returns the parent rules without the nested field's children.
        """
        nested_rules = rule_parser.filter_nested_items(rules, field)
        nested_data = rule_parser.data_get(self.data, field)

        if isinstance(nested_data, (dict, list)):
            nested = type(self)(
                nested_data,
                rule_parser.unprefix_field_keys(nested_rules, field),
                rule_parser.unprefix_field_keys(rule_parser.filter_nested_items(self.custom_messages, field), field),
                rule_parser.unprefix_field_keys(rule_parser.filter_nested_items(self.custom_attributes, field), field),
            )
            self.after(lambda parent: parent.merge_errors(rule_parser.prefix_field_keys(nested.errors(), field)))

        return {key: value for key, value in rules.items() if key not in nested_rules}

    # =========================================================================
    # Messages
    # =========================================================================

    def get_display_attribute(self, field: str) -> str:
        for key, label in self.custom_attributes.items():
            if rule_parser.field_matches(key, field):
                return label
        return field.replace("_", " ")

    def _make_message(self, field: str, rule: str, arguments: list) -> str:
        message = self._custom_message(field, rule)
        if message is None:
            message = self._default_message(field, rule)

        display = self.get_display_attribute(field)
        message = (
            message.replace(":attribute", display)
            .replace(":ATTRIBUTE", display.upper())
            .replace(":Attribute", display[:1].upper() + display[1:])
        )

        replacer = self._replacers.get(rule)
        if replacer is not None:
            return replacer(message, field, rule, arguments, self)

        for placeholder, replacement in self._replacements(field, rule, arguments).items():
            message = message.replace(f":{placeholder}", replacement)
        return message

    def _custom_message(self, field: str, rule: str) -> Optional[str]:
        for key, message in self.custom_messages.items():
            if rule_parser.field_matches(key, f"{field}.{rule}"):
                return message
        return self.custom_messages.get(rule)

    def _default_message(self, field: str, rule: str) -> str:
        if rule in self._extension_messages:
            return self._extension_messages[rule]

        message = MESSAGES.get(rule)
        if isinstance(message, dict):
            return message[self._attribute_type(field)]
        return message or f"validation.{rule}"

    def _attribute_type(self, field: str) -> str:
        if self._has_numeric_rule(field):
            return "numeric"
        if isinstance(self.get_value(field), (list, dict)):
            return "array"
        return "string"

    def _replacements(self, field: str, rule: str, arguments: list) -> dict[str, str]:
        first = arguments[0] if arguments else ""

        if rule in ("between", "digits_between"):
            return {"min": first, "max": arguments[1] if len(arguments) > 1 else ""}
        if rule in ("min", "max", "size", "digits"):
            return {rule: first}
        if rule in ("gt", "gte", "lt", "lte"):
            if is_numeric(first):
                return {"value": first}
            return {"value": _format_size(self._get_size(first, self.get_value(first)))}
        if rule in ("in", "not_in", "starts_with", "ends_with"):
            return {"values": ", ".join(arguments)}
        if rule in ("required_with", "required_with_all", "required_without", "required_without_all"):
            return {"values": " / ".join(self.get_display_attribute(other) for other in arguments)}
        if rule == "required_if":
            return {"other": self.get_display_attribute(first), "value": arguments[1] if len(arguments) > 1 else ""}
        if rule == "required_unless":
            return {"other": self.get_display_attribute(first), "values": ", ".join(arguments[1:])}
        if rule in ("same", "different"):
            return {"other": self.get_display_attribute(first)}
        return {}

    # =========================================================================
    # Helpers
    # =========================================================================

    def _has_numeric_rule(self, field: str) -> bool:
        return rule_parser.contains_any_rule(self.rules.get(field, []), NUMERIC_RULES)

    def _get_size(self, field: str, value: Any) -> float:
        """Size of a value: numbers under a numeric rule, else length."""
        if self._has_numeric_rule(field) and is_numeric(value):
            return float(value)
        if isinstance(value, (list, dict, tuple)):
            return len(value)
        if value is None:
            return 0
        return len(str(value))

    def _filled(self, field: str) -> bool:
        return not _is_empty(self.get_value(field))

    def _compare_size(self, field: str, value: Any, arguments: list) -> Optional[tuple[float, float]]:
        self._require_arguments(arguments, 1, "size comparison")
        if is_numeric(arguments[0]):
            return self._get_size(field, value), float(arguments[0])
        present, other = rule_parser.lookup(self.data, arguments[0])
        if not present:
            return None
        return self._get_size(field, value), self._get_size(arguments[0], other)

    @staticmethod
    def _require_arguments(arguments: list, count: int, rule: str) -> None:
        if len(arguments) < count:
            raise ValueError(f"Validation rule {rule} requires at least {count} parameters.")

    # =========================================================================
    # Implicit rules
    # =========================================================================

    def _validate_required(self, field: str, value: Any, arguments: list) -> bool:
        return not _is_empty(value)

    def _validate_present(self, field: str, value: Any, arguments: list) -> bool:
        return rule_parser.lookup(self.data, field)[0]

    def _validate_filled(self, field: str, value: Any, arguments: list) -> bool:
        if rule_parser.lookup(self.data, field)[0]:
            return not _is_empty(value)
        return True

    def _validate_accepted(self, field: str, value: Any, arguments: list) -> bool:
        if _is_empty(value) or isinstance(value, (list, dict)):
            return False
        return value is True or value in ("yes", "on", "1", "true") or (isinstance(value, int) and value == 1)

    def _validate_required_if(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 2, "required_if")
        if stringify(self.get_value(arguments[0])) in arguments[1:]:
            return not _is_empty(value)
        return True

    def _validate_required_unless(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 2, "required_unless")
        if stringify(self.get_value(arguments[0])) not in arguments[1:]:
            return not _is_empty(value)
        return True

    def _validate_required_with(self, field: str, value: Any, arguments: list) -> bool:
        if any(self._filled(other) for other in arguments):
            return not _is_empty(value)
        return True

    def _validate_required_with_all(self, field: str, value: Any, arguments: list) -> bool:
        if arguments and all(self._filled(other) for other in arguments):
            return not _is_empty(value)
        return True

    def _validate_required_without(self, field: str, value: Any, arguments: list) -> bool:
        if any(not self._filled(other) for other in arguments):
            return not _is_empty(value)
        return True

    def _validate_required_without_all(self, field: str, value: Any, arguments: list) -> bool:
        if arguments and not any(self._filled(other) for other in arguments):
            return not _is_empty(value)
        return True

    # =========================================================================
    # Type rules
    # =========================================================================

    def _validate_string(self, field: str, value: Any, arguments: list) -> bool:
        return isinstance(value, str)

    def _validate_integer(self, field: str, value: Any, arguments: list) -> bool:
        return is_integer(value)

    def _validate_numeric(self, field: str, value: Any, arguments: list) -> bool:
        return is_numeric(value)

    def _validate_boolean(self, field: str, value: Any, arguments: list) -> bool:
        if isinstance(value, bool):
            return True
        return value in (0, 1, "0", "1") and not isinstance(value, float)

    def _validate_array(self, field: str, value: Any, arguments: list) -> bool:
        return isinstance(value, (list, dict))

    # =========================================================================
    # Size rules
    # =========================================================================

    def _validate_min(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "min")
        return self._get_size(field, value) >= float(arguments[0])

    def _validate_max(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "max")
        return self._get_size(field, value) <= float(arguments[0])

    def _validate_between(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 2, "between")
        return float(arguments[0]) <= self._get_size(field, value) <= float(arguments[1])

    def _validate_size(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "size")
        return self._get_size(field, value) == float(arguments[0])

    def _validate_gt(self, field: str, value: Any, arguments: list) -> bool:
        sizes = self._compare_size(field, value, arguments)
        return sizes is not None and sizes[0] > sizes[1]

    def _validate_gte(self, field: str, value: Any, arguments: list) -> bool:
        sizes = self._compare_size(field, value, arguments)
        return sizes is not None and sizes[0] >= sizes[1]

    def _validate_lt(self, field: str, value: Any, arguments: list) -> bool:
        sizes = self._compare_size(field, value, arguments)
        return sizes is not None and sizes[0] < sizes[1]

    def _validate_lte(self, field: str, value: Any, arguments: list) -> bool:
        sizes = self._compare_size(field, value, arguments)
        return sizes is not None and sizes[0] <= sizes[1]

    def _validate_digits(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "digits")
        text = stringify(value)
        return text.isdigit() and len(text) == int(arguments[0])

    def _validate_digits_between(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 2, "digits_between")
        text = stringify(value)
        return text.isdigit() and int(arguments[0]) <= len(text) <= int(arguments[1])

    # =========================================================================
    # Value rules
    # =========================================================================

    def _validate_in(self, field: str, value: Any, arguments: list) -> bool:
        if isinstance(value, list) and rule_parser.contains_rule(self.rules.get(field, []), "array"):
            return all(stringify(item) in arguments for item in value)
        return not isinstance(value, (list, dict)) and stringify(value) in arguments

    def _validate_not_in(self, field: str, value: Any, arguments: list) -> bool:
        if isinstance(value, list) and rule_parser.contains_rule(self.rules.get(field, []), "array"):
            return not any(stringify(item) in arguments for item in value)
        return stringify(value) not in arguments

    def _validate_same(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "same")
        return value == self.get_value(arguments[0])

    def _validate_different(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "different")
        present, other = rule_parser.lookup(self.data, arguments[0])
        return present and value != other

    def _validate_confirmed(self, field: str, value: Any, arguments: list) -> bool:
        return self._validate_same(field, value, [f"{field}_confirmation"])

    def _validate_starts_with(self, field: str, value: Any, arguments: list) -> bool:
        return any(stringify(value).startswith(argument) for argument in arguments)

    def _validate_ends_with(self, field: str, value: Any, arguments: list) -> bool:
        return any(stringify(value).endswith(argument) for argument in arguments)

    # =========================================================================
    # Format rules
    # =========================================================================

    def _validate_alpha(self, field: str, value: Any, arguments: list) -> bool:
        return isinstance(value, str) and re.fullmatch(r"[^\W\d_]+", value) is not None

    def _validate_alpha_num(self, field: str, value: Any, arguments: list) -> bool:
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            return False
        return re.fullmatch(r"[^\W_]+", str(value)) is not None

    def _validate_alpha_dash(self, field: str, value: Any, arguments: list) -> bool:
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            return False
        return re.fullmatch(r"[\w-]+", str(value)) is not None

    def _validate_email(self, field: str, value: Any, arguments: list) -> bool:
        return isinstance(value, str) and _EMAIL_PATTERN.fullmatch(value) is not None

    def _validate_url(self, field: str, value: Any, arguments: list) -> bool:
        if not isinstance(value, str) or re.search(r"\s", value):
            return False
        parsed = urlparse(value)
        return parsed.scheme.lower() in URL_SCHEMES and bool(parsed.netloc or parsed.scheme == "mailto")

    def _validate_ip(self, field: str, value: Any, arguments: list) -> bool:
        return _ip_version(value) is not None

    def _validate_ipv4(self, field: str, value: Any, arguments: list) -> bool:
        return _ip_version(value) == 4

    def _validate_ipv6(self, field: str, value: Any, arguments: list) -> bool:
        return _ip_version(value) == 6

    def _validate_regex(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "regex")
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            return False
        return compile_pattern(arguments[0]).search(str(value)) is not None

    def _validate_not_regex(self, field: str, value: Any, arguments: list) -> bool:
        self._require_arguments(arguments, 1, "not_regex")
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            return False
        return compile_pattern(arguments[0]).search(str(value)) is None

    def _validate_date(self, field: str, value: Any, arguments: list) -> bool:
        if isinstance(value, (date, datetime)):
            return True
        if not isinstance(value, str):
            return False
        try:
            datetime.fromisoformat(value)
            return True
        except ValueError:
            pass
        for date_format in _DATE_FORMATS:
            try:
                datetime.strptime(value, date_format)
                return True
            except ValueError:
                continue
        return False

    def _validate_uuid(self, field: str, value: Any, arguments: list) -> bool:
        return isinstance(value, str) and _UUID_PATTERN.fullmatch(value) is not None


# =============================================================================
# Value helpers
# =============================================================================


def is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, str) and _INTEGER_PATTERN.fullmatch(value) is not None


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == value
    return isinstance(value, str) and _NUMERIC_PATTERN.fullmatch(value) is not None


def stringify(value: Any) -> str:
    """String form of a scalar as it appears in rule arguments."""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    return str(value)


def compile_pattern(pattern: str) -> re.Pattern:
    """Compile a delimited pattern such as ``/^[a-z]+$/i``.

    Patterns without delimiters are compiled as-is.
    """
    if len(pattern) > 2 and not pattern[0].isalnum() and pattern[0] not in "\\ ^":
        closing = _CLOSING_DELIMITERS.get(pattern[0], pattern[0])
        end = pattern.rfind(closing)
        if end > 0:
            flags = 0
            for modifier in pattern[end + 1:]:
                flags |= _PATTERN_FLAGS.get(modifier, 0)
            return re.compile(pattern[1:end], flags)
    return re.compile(pattern)


def _as_mapping(data: Any) -> dict[str, Any]:
    if isinstance(data, dict):
        return data
    if isinstance(data, list):
        return {str(index): item for index, item in enumerate(data)}
    return {}


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) < 1
    return False


def _ip_version(value: Any) -> Optional[int]:
    if not isinstance(value, str):
        return None
    try:
        return ipaddress.ip_address(value).version
    except ValueError:
        return None


def _format_size(size: float) -> str:
    return str(int(size)) if float(size).is_integer() else str(size)
