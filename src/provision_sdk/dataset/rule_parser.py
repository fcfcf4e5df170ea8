"""Rule parsing helpers.

Functions for exploding, parsing and expanding rule directives, and for
moving field paths in and out of a parent field's namespace.

A rule directive is either a string (``"required"``, ``"max:50"``) or a
DataSet subclass, which stands for that data set's own rules nested under
the field.
"""

from __future__ import annotations

import csv
import fnmatch
from typing import Any, Iterable, Optional, Union

# Marker added to a non-array field whose children are validated in isolation
NESTED_DATA_SET_RULE = "nested_data_set"

# Rules whose single argument is a pattern which may itself contain commas
_PATTERN_RULES = ("regex", "not_regex")

_MISSING = object()

RuleDirective = Union[str, type]


# =============================================================================
# Rule directives
# =============================================================================


def explode_rules(rules: Any) -> list[RuleDirective]:
    """Normalize a field's rules into a list of directives."""
    if rules is None:
        return []
    if isinstance(rules, str):
        return [rule for rule in rules.split("|") if rule]
    if isinstance(rules, (list, tuple)):
        return list(rules)
    return [rules]


def is_data_set(rule: Any) -> bool:
    from provision_sdk.dataset.base import DataSet

    return isinstance(rule, type) and issubclass(rule, DataSet)


def is_rule(rule: str) -> bool:
    """Whether the named rule is known to the validator (built-in or extension)."""
    from provision_sdk.dataset.validator import Validator

    name, _ = parse_rule(rule)
    return Validator.has_rule(name)


def normalize_rule_name(name: str) -> str:
    return name.strip().lower().replace("-", "_")


def parse_rule(rule: str) -> tuple[str, list[str]]:
    """Split ``name:arg1,arg2`` into its name and arguments.

    Arguments are parsed as CSV so quoted values may contain commas. Pattern
    rules keep their whole argument intact.
    """
    if ":" not in rule:
        return rule, []

    name, arguments = rule.split(":", 1)
    if not arguments:
        return name, []
    if normalize_rule_name(name) in _PATTERN_RULES:
        return name, [arguments]

    return name, next(csv.reader([arguments]))


def get_rule_arguments(field_rules: Iterable[RuleDirective], rule: str) -> Optional[list[str]]:
    """Get the arguments of the first occurrence of a rule, or None if absent."""
    for field_rule in field_rules:
        if not isinstance(field_rule, str):
            continue
        if field_rule == rule:
            return []
        if field_rule.startswith(f"{rule.rstrip(':')}:"):
            return parse_rule(field_rule)[1]
    return None


def assemble_rule(base_rule: str, arguments: Iterable[Any]) -> str:
    arguments = [str(argument) for argument in arguments]
    return f"{base_rule}:{','.join(arguments)}" if arguments else base_rule


def contains_rule(field_rules: Any, check_rule: str) -> bool:
    """Whether the rules contain the given rule.

    If ``check_rule`` carries arguments only an exact match counts, otherwise
    any arguments are ignored. Accepts either one field's rules or a mapping
    of field to rules.
    """
    if isinstance(field_rules, dict):
        return any(contains_rule(explode_rules(rules), check_rule) for rules in field_rules.values())

    ignore_arguments = not (":" in check_rule and not check_rule.endswith(":"))
    prefix = f"{check_rule.rstrip(':')}:"

    for rule in explode_rules(field_rules):
        if rule == check_rule:
            return True
        if ignore_arguments and isinstance(rule, str) and rule.startswith(prefix):
            return True

    return False


def contains_any_rule(field_rules: Any, check_rules: Iterable[str]) -> bool:
    return any(contains_rule(field_rules, rule) for rule in check_rules)


# =============================================================================
# Field paths
# =============================================================================


def field_is_array(field: str) -> bool:
    return field.endswith(".*")


def unarray_field(field: str) -> str:
    head, sep, tail = field.rpartition(".*")
    return head + tail if sep else field


def prefix_field(field: str, parent_field: Optional[str]) -> str:
    return f"{parent_field}.{field}" if parent_field else field


def unprefix_field(field: str, parent_field: Optional[str]) -> str:
    if not parent_field:
        return field
    prefix = prefix_field("", parent_field)
    return field[len(prefix):] if field.startswith(prefix) else field


def get_field_prefix(field: str) -> Optional[str]:
    if "." not in field:
        return None
    return field.split(".", 1)[0]


def filter_nested_items(items: dict[str, Any], parent_field: str, include_parent: bool = False) -> dict[str, Any]:
    """Select the items keyed under ``parent_field``."""
    prefix = prefix_field("", parent_field)
    return {
        field: item
        for field, item in items.items()
        if field.startswith(prefix) or (include_parent and field == parent_field)
    }


def prefix_field_keys(items: dict[str, Any], parent_field: Optional[str]) -> dict[str, Any]:
    if not parent_field:
        return dict(items)
    return {prefix_field(field, parent_field): item for field, item in items.items()}


def unprefix_field_keys(items: dict[str, Any], parent_field: Optional[str]) -> dict[str, Any]:
    if not parent_field:
        return dict(items)
    return {unprefix_field(field, parent_field): item for field, item in items.items()}


def field_matches(pattern: str, field: str) -> bool:
    """Whether a concrete field path matches a path which may contain ``*``."""
    if "*" not in pattern:
        return pattern == field
    return len(pattern.split(".")) == len(field.split(".")) and fnmatch.fnmatchcase(field, pattern)


# =============================================================================
# Data access
# =============================================================================


def lookup(data: Any, path: str) -> tuple[bool, Any]:
    """Resolve a dotted path, returning ``(present, value)``."""
    value = data
    for segment in path.split("."):
        value = _child(value, segment)
        if value is _MISSING:
            return False, None
    return True, value


def data_get(data: Any, path: str, default: Any = None) -> Any:
    present, value = lookup(data, path)
    return value if present else default


def data_set(data: dict[str, Any], path: str, value: Any) -> None:
    """Set a dotted path, creating intermediate mappings as needed."""
    segments = path.split(".")
    target: Any = data
    for segment in segments[:-1]:
        child = _child(target, segment)
        if not isinstance(child, (dict, list)):
            child = {}
            _assign(target, segment, child)
        target = child
    _assign(target, segments[-1], value)


def _child(value: Any, segment: str) -> Any:
    if isinstance(value, dict):
        if segment in value:
            return value[segment]
        if segment.isdigit() and int(segment) in value:
            return value[int(segment)]
        return _MISSING
    if isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
        return value[int(segment)]
    return _MISSING


def _assign(target: Any, segment: str, value: Any) -> None:
    if isinstance(target, list) and segment.isdigit() and int(segment) < len(target):
        target[int(segment)] = value
    elif isinstance(target, dict):
        target[segment] = value


def _child_keys(value: Any) -> list[str]:
    if isinstance(value, dict):
        return [str(key) for key in value]
    if isinstance(value, list):
        return [str(index) for index in range(len(value))]
    return []


# =============================================================================
# Expansion
# =============================================================================


def expand(raw_rules: dict[str, Any], parent_field: Optional[str] = None) -> dict[str, list[RuleDirective]]:
    """Flatten rules, inlining the rules of referenced data sets.

    A data set reference on a non-array field adds the nested marker rule to
    that field and merges the nested data set's rules under the field path.
    Array fields (``field.*``) get no marker; their nested rules land under
    ``field.*.child`` and are resolved per index at validation time.
    """
    expanded: dict[str, list[RuleDirective]] = {}

    for field, field_rules in raw_rules.items():
        field = prefix_field(field, parent_field)

        for rule in explode_rules(field_rules):
            if is_data_set(rule):
                if not field_is_array(field) and not contains_rule(expanded.get(field, []), NESTED_DATA_SET_RULE):
                    expanded.setdefault(field, []).append(NESTED_DATA_SET_RULE)

                for nested_field, nested_rules in rule.rules().expand(field).items():
                    expanded[nested_field] = list(nested_rules)
                continue

            expanded.setdefault(field, []).append(rule)

    return expanded


def expand_wildcard_rules(rules: dict[str, list[RuleDirective]], data: Any) -> dict[str, list[RuleDirective]]:
    """Replace ``*`` path segments with the keys present in the data.

    A wildcard that matches nothing produces no rules. Asterisks inside rule
    arguments are replaced by the matched keys, in order.
    """
    concrete: dict[str, list[RuleDirective]] = {}

    for field, field_rules in rules.items():
        if "*" not in field.split("."):
            concrete.setdefault(field, []).extend(field_rules)
            continue

        for path, keys in _expand_wildcard_field(field, data):
            concrete.setdefault(path, []).extend(
                _replace_asterisks(rule, keys) for rule in field_rules
            )

    return concrete


def _expand_wildcard_field(field: str, data: Any) -> list[tuple[str, list[str]]]:
    matches: list[tuple[list[str], Any, list[str]]] = [([], data, [])]

    for segment in field.split("."):
        next_matches = []
        for path, value, keys in matches:
            if segment == "*":
                for key in _child_keys(value):
                    next_matches.append((path + [key], _child(value, key), keys + [key]))
            else:
                next_matches.append((path + [segment], _child(value, segment), keys))
        matches = next_matches

    return [(".".join(path), keys) for path, _, keys in matches]


def _replace_asterisks(rule: RuleDirective, keys: list[str]) -> RuleDirective:
    if not isinstance(rule, str) or "*" not in rule or ":" not in rule:
        return rule

    name, arguments = rule.split(":", 1)
    if normalize_rule_name(name) in _PATTERN_RULES:
        return rule
    for key in keys:
        arguments = arguments.replace("*", key, 1)
    return f"{name}:{arguments}"
