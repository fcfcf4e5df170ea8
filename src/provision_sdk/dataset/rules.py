"""Rule set of a data set."""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional

from provision_sdk.dataset import rule_parser
from provision_sdk.dataset.rule_parser import RuleDirective


class Rules:
    """Declarative per-field validation rules of a data set.

    Maps dotted field paths to rule directives, given either as a list or as
    a ``|`` separated string. Directives may reference another DataSet class,
    whose rules are expanded under the field.

    The expanded mapping is memoized and only recomputed when the parent
    field changes.

    Example:
        >>> Rules({
        ...     "sld": ["required", "alpha-dash"],
        ...     "registrant": ["required", Registrant],
        ...     "nameservers.*": [NameServer],
        ... })
    """

    def __init__(self, rules: Optional[dict[str, Any]] = None):
        self._raw_rules: dict[str, Any] = dict(rules or {})
        self._expanded: Optional[dict[str, list[RuleDirective]]] = None
        self._parent_field: Optional[str] = None

    @classmethod
    def from_dict(cls, rules: dict[str, Any]) -> Rules:
        return cls(rules)

    @property
    def parent_field(self) -> Optional[str]:
        return self._parent_field

    def set_parent_field(self, parent_field: Optional[str]) -> Rules:
        parent_field = parent_field or None
        if parent_field != self._parent_field:
            self._parent_field = parent_field
            self._expanded = None
        return self

    def expand(self, parent_field: Optional[str] = None) -> dict[str, list[RuleDirective]]:
        """Get the flattened rules, prefixed by the given parent field."""
        self.set_parent_field(parent_field)

        if self._expanded is None:
            self._expanded = rule_parser.expand(self._raw_rules, self._parent_field)

        return self._expanded

    def raw(self, field: Optional[str] = None) -> Any:
        """Get the rules as declared, or one field's exploded rules."""
        if field is not None:
            return rule_parser.explode_rules(self._raw_rules.get(field))
        return dict(self._raw_rules)

    def to_dict(self) -> dict[str, list[RuleDirective]]:
        return {field: list(rules) for field, rules in self.expand(self._parent_field).items()}

    def to_json(self) -> str:
        """Serialize the expanded rules; nested data sets appear by class name."""
        return json.dumps(
            {
                field: [rule if isinstance(rule, str) else rule.__name__ for rule in rules]
                for field, rules in self.to_dict().items()
            }
        )

    def __contains__(self, field: object) -> bool:
        return field in self.expand(self._parent_field)

    def __getitem__(self, field: str) -> list[RuleDirective]:
        return list(self.expand(self._parent_field)[field])

    def __iter__(self) -> Iterator[str]:
        return iter(self.expand(self._parent_field))

    def __len__(self) -> int:
        return len(self.expand(self._parent_field))

    def __repr__(self) -> str:
        return f"Rules({self._expanded if self._expanded is not None else self._raw_rules!r})"
