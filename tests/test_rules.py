"""Tests for rule parsing and rule expansion."""

import json

import pytest

from provision_sdk import Rules
from provision_sdk.dataset import NESTED_DATA_SET_RULE, rule_parser
from provision_sdk.dataset.examples import NameServer, RegisterParameterSet, Registrant


class TestExplodeAndParse:
    """Test splitting rules into directives."""

    def test_explode_string_rules(self):
        """Test pipe separated rules are split."""
        assert rule_parser.explode_rules("required|string|max:50") == ["required", "string", "max:50"]

    def test_explode_list_and_single_rule(self):
        """Test lists are copied and single directives wrapped."""
        assert rule_parser.explode_rules(["required", NameServer]) == ["required", NameServer]
        assert rule_parser.explode_rules(NameServer) == [NameServer]
        assert rule_parser.explode_rules(None) == []

    def test_parse_rule_arguments(self):
        """Test arguments are parsed as CSV."""
        assert rule_parser.parse_rule("between:1,10") == ("between", ["1", "10"])
        assert rule_parser.parse_rule('in:"a,b",c') == ("in", ["a,b", "c"])
        assert rule_parser.parse_rule("required") == ("required", [])

    def test_parse_pattern_rule_keeps_commas(self):
        """Test regex arguments are not split."""
        assert rule_parser.parse_rule("regex:/^[a-z]{1,3}$/") == ("regex", ["/^[a-z]{1,3}$/"])

    def test_normalize_rule_name(self):
        """Test dashes and case are normalized."""
        assert rule_parser.normalize_rule_name("Alpha-Dash-Dot") == "alpha_dash_dot"

    def test_is_rule(self):
        """Test built-in and extension rules are known."""
        assert rule_parser.is_rule("required")
        assert rule_parser.is_rule("max:5")
        assert rule_parser.is_rule("domain-name")
        assert not rule_parser.is_rule("no_such_rule")


class TestContainsRule:
    """Test rule membership checks."""

    def test_contains_rule_ignores_arguments(self):
        """Test a bare rule name matches any arguments."""
        assert rule_parser.contains_rule(["required", "max:50"], "max")
        assert rule_parser.contains_rule("required|max:50", "max:")

    def test_contains_rule_exact_arguments(self):
        """Test a rule with arguments only matches exactly."""
        assert rule_parser.contains_rule(["max:50"], "max:50")
        assert not rule_parser.contains_rule(["max:50"], "max:10")

    def test_contains_rule_in_mapping(self):
        """Test a mapping of fields is searched."""
        assert rule_parser.contains_rule({"a": ["string"], "b": "required"}, "required")
        assert not rule_parser.contains_rule({"a": ["string"]}, "required")

    def test_get_rule_arguments(self):
        """Test arguments of the first occurrence are returned."""
        assert rule_parser.get_rule_arguments(["required", "between:1,5"], "between") == ["1", "5"]
        assert rule_parser.get_rule_arguments(["required"], "required") == []
        assert rule_parser.get_rule_arguments(["required"], "max") is None

    def test_assemble_rule(self):
        """Test rules are assembled from arguments."""
        assert rule_parser.assemble_rule("between", [1, 10]) == "between:1,10"
        assert rule_parser.assemble_rule("required", []) == "required"


class TestFieldPaths:
    """Test field path helpers."""

    def test_array_fields(self):
        """Test array field detection and unwrapping."""
        assert rule_parser.field_is_array("nameservers.*")
        assert not rule_parser.field_is_array("nameservers")
        assert rule_parser.unarray_field("nameservers.*") == "nameservers"

    def test_prefix_and_unprefix(self):
        """Test moving fields in and out of a parent."""
        assert rule_parser.prefix_field("name", "registrant") == "registrant.name"
        assert rule_parser.prefix_field("name", None) == "name"
        assert rule_parser.unprefix_field("registrant.name", "registrant") == "name"
        assert rule_parser.unprefix_field("other.name", "registrant") == "other.name"

    def test_filter_nested_items(self):
        """Test only items under the parent are selected."""
        items = {"registrant": 1, "registrant.name": 2, "registrant_id": 3}
        assert rule_parser.filter_nested_items(items, "registrant") == {"registrant.name": 2}
        assert rule_parser.filter_nested_items(items, "registrant", include_parent=True) == {
            "registrant": 1,
            "registrant.name": 2,
        }

    def test_field_matches(self):
        """Test wildcard field matching respects segment counts."""
        assert rule_parser.field_matches("ns.*.host", "ns.0.host")
        assert not rule_parser.field_matches("ns.*", "ns.0.host")
        assert rule_parser.field_matches("sld", "sld")

    def test_data_get_and_set(self):
        """Test dotted access into dicts and lists."""
        data = {"a": {"b": [10, 20]}}
        assert rule_parser.data_get(data, "a.b.1") == 20
        assert rule_parser.data_get(data, "a.c", "missing") == "missing"
        assert rule_parser.lookup(data, "a.x") == (False, None)

        rule_parser.data_set(data, "a.c.d", 5)
        assert data["a"]["c"] == {"d": 5}


class TestExpansion:
    """Test nested data set rule expansion."""

    def test_nested_data_set_inlined(self):
        """Test a data set reference adds the marker and nested rules."""
        expanded = RegisterParameterSet.rules().expand()

        assert expanded["registrant"] == ["required_without:registrant_id", NESTED_DATA_SET_RULE]
        assert expanded["registrant.email"] == ["email"]
        assert expanded["ns1"] == [NESTED_DATA_SET_RULE]
        assert expanded["ns1.host"] == ["required", "alpha-dash-dot"]

    def test_array_data_set_has_no_marker(self):
        """Test array fields get nested rules under the wildcard."""
        expanded = Rules({"nameservers.*": [NameServer]}).expand()

        assert "nameservers.*" not in expanded
        assert expanded["nameservers.*.host"] == ["required", "alpha-dash-dot"]

    def test_expand_with_parent_field(self):
        """Test expansion under a parent prefixes every field."""
        rules = Registrant.rules()
        assert "contact.name" in rules.expand("contact")
        assert "name" in rules.expand()

    def test_expansion_is_memoized(self):
        """Test the expanded mapping is reused until the parent changes."""
        rules = Rules({"a": "required"})
        first = rules.expand()
        assert rules.expand() is first
        assert rules.expand("parent") is not first

    def test_expand_wildcard_rules(self):
        """Test wildcards resolve against present keys and indices."""
        rules = {"ns.*.host": ["required"], "ns.*.ip": ["required_with:ns.*.host"]}
        data = {"ns": [{"host": "a"}, {"host": "b"}]}

        concrete = rule_parser.expand_wildcard_rules(rules, data)

        assert concrete["ns.0.host"] == ["required"]
        assert concrete["ns.1.ip"] == ["required_with:ns.1.host"]
        assert "ns.*.host" not in concrete

    def test_wildcard_without_data_produces_no_rules(self):
        """Test a wildcard matching nothing yields no rules."""
        assert rule_parser.expand_wildcard_rules({"ns.*": ["string"]}, {}) == {}


class TestRules:
    """Test the Rules container."""

    def test_mapping_protocol(self):
        """Test containment, lookup, iteration and length."""
        rules = Rules({"sld": "required|alpha-dash", "tld": ["required"]})

        assert "sld" in rules
        assert rules["sld"] == ["required", "alpha-dash"]
        assert list(rules) == ["sld", "tld"]
        assert len(rules) == 2

    def test_raw_field(self):
        """Test raw rules of a single field are exploded."""
        rules = Rules({"sld": "required|alpha-dash"})
        assert rules.raw("sld") == ["required", "alpha-dash"]
        assert rules.raw("missing") == []

    def test_to_json_names_data_sets(self):
        """Test nested data sets serialize by class name."""
        rules = Rules({"ns1": ["nullable", NameServer]})
        decoded = json.loads(rules.to_json())

        assert decoded["ns1"] == ["nullable", NESTED_DATA_SET_RULE]
        assert decoded["ns1.host"] == ["required", "alpha-dash-dot"]

    @pytest.mark.parametrize("parent", [None, "", "wrapper"])
    def test_parent_field_property(self, parent):
        """Test the parent field is normalized."""
        rules = Rules({"a": "required"}).set_parent_field(parent)
        assert rules.parent_field == (parent or None)
