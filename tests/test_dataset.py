"""Tests for data sets and the shared data set types."""

import pytest

from provision_sdk import (
    AboutData,
    EmptyData,
    InvalidDataSetError,
    ResultData,
    StorageConfiguration,
    SystemInfo,
)
from provision_sdk.dataset.examples import NameServer, RegisterParameterSet, Registrant


@pytest.fixture
def register_values():
    return {
        "sld": "example",
        "tld": "com",
        "renew_years": 2,
        "registrant": {"name": "Jane Doe", "email": "jane@example.com", "country_code": "GB"},
        "ns1": {"host": "ns1.example.com", "ip": "192.0.2.53"},
        "ns2": {"host": "ns2.example.com"},
    }


class TestCasting:
    """Test nested data sets are cast on construction."""

    def test_nested_fields_become_data_sets(self, register_values):
        """Test dict values under a data set rule are wrapped."""
        params = RegisterParameterSet.create(register_values)

        assert isinstance(params.registrant, Registrant)
        assert params.registrant.name == "Jane Doe"
        assert [ns.host for ns in params.nameservers] == ["ns1.example.com", "ns2.example.com"]
        assert all(isinstance(ns, NameServer) for ns in params.nameservers)

    def test_nested_data_sets_do_not_validate_on_read(self):
        """Test nested instances are created without auto-validation."""
        params = RegisterParameterSet.create({"ns1": {"ip": "nope"}}, auto_validation=False)
        assert params.get("ns1").ip == "nope"

    def test_raw_returns_plain_data(self, register_values):
        """Test raw() and to_dict() return the original plain values."""
        params = RegisterParameterSet.create(register_values)

        assert params.raw() == register_values
        assert params.to_dict() == register_values
        assert isinstance(params.all()["registrant"], Registrant)

    def test_data_set_values_are_flattened(self):
        """Test data set instances passed as values are stored as dicts."""
        ns = NameServer.create({"host": "ns1.example.com"})
        params = RegisterParameterSet.create({"ns1": ns}, auto_validation=False)

        assert params.raw()["ns1"] == {"host": "ns1.example.com"}
        assert isinstance(params.get("ns1"), NameServer)

    def test_domain_property(self, register_values):
        """Test typed properties read through get()."""
        params = RegisterParameterSet.create(register_values)
        assert params.domain == "example.com"
        assert params.renew_years == 2


class TestValidation:
    """Test validation of data sets."""

    def test_valid_data(self, register_values):
        """Test valid data passes and marks the data set validated."""
        params = RegisterParameterSet.create(register_values)
        params.validate()
        assert params.is_validated()

    def test_read_validates_first(self):
        """Test reads raise while auto-validation is on."""
        params = RegisterParameterSet.create({"sld": "example"})

        with pytest.raises(InvalidDataSetError) as exc_info:
            params.get("sld")

        errors = exc_info.value.errors()
        assert errors["tld"] == ["The tld field is required."]
        assert errors["renew_years"] == ["The renew years field is required."]

    def test_has_never_validates(self):
        """Test has() works on invalid data."""
        params = RegisterParameterSet.create({"sld": "example"})
        assert params.has("sld")
        assert not params.has("tld")

    def test_disabled_auto_validation(self):
        """Test reads return values when auto-validation is off."""
        params = RegisterParameterSet.create({"sld": "example"}, auto_validation=False)
        assert params.get("sld") == "example"
        assert params.get("tld", "net") == "net"

    def test_either_registrant_or_id(self):
        """Test conditional rules across a nested field."""
        errors = RegisterParameterSet.create({"sld": "example", "tld": "com", "renew_years": 1}).errors()

        assert errors == {
            "registrant_id": ["The registrant id field is required when registrant is not present."],
            "registrant": ["The registrant field is required when registrant id is not present."],
        }

    def test_nested_errors_are_prefixed(self):
        """Test errors of a nested data set are keyed under its field."""
        params = RegisterParameterSet.create({
            "sld": "example",
            "tld": "com",
            "renew_years": 1,
            "registrant": {"email": "not-an-email", "country_code": "XX"},
        })

        errors = params.errors()

        assert errors["registrant.name"] == ["The name field is required when organisation is not present."]
        assert errors["registrant.email"] == ["The email must be a valid email address."]
        assert errors["registrant.country_code"] == ["This is not a valid country code."]

    def test_nested_list_is_validated(self, register_values):
        """Test a list given for a nested data set is checked against its rules."""
        register_values["ns1"] = ["junk"]

        errors = RegisterParameterSet.create(register_values).errors()

        assert errors == {"ns1.host": ["The host field is required."]}

    def test_validation_is_memoized(self, register_values):
        """Test validate_if_not_yet_validated() runs once."""
        params = RegisterParameterSet.create(register_values)
        params.validate_if_not_yet_validated()
        validator = params._validator

        params.validate_if_not_yet_validated()
        assert params._validator is validator

    def test_setter_resets_validation(self):
        """Test changing a value requires validating again."""
        about = AboutData.create({"name": "Domains", "description": "Domain names"})
        about.validate()

        about.set_name("x" * 51)

        assert not about.is_validated()
        assert about.errors() == {"name": ["The name must not be greater than 50 characters."]}

    def test_copy_switches_auto_validation(self):
        """Test copies can read invalid data without affecting the original."""
        params = RegisterParameterSet.create({"sld": "example"})
        clone = params.copy(auto_validation=False)

        assert clone.get("sld") == "example"
        assert not clone.auto_validation()
        assert params.auto_validation()
        with pytest.raises(InvalidDataSetError):
            params.all()

    def test_copy_does_not_share_nested_data_sets(self, register_values):
        """Test changing a nested data set of a copy leaves the original alone."""
        params = RegisterParameterSet.create(register_values)
        clone = params.copy()

        clone.get("ns1")._set_value("host", "ns9.example.com")

        assert clone.get("ns1") is not params.get("ns1")
        assert params.get("ns1").host == "ns1.example.com"
        assert clone.get("ns1").host == "ns9.example.com"


class TestCommonDataSets:
    """Test the shared data set types."""

    def test_empty_data(self):
        """Test EmptyData accepts anything and has no rules."""
        data = EmptyData.create({"extra": 1})
        assert data.errors() == {}
        assert len(EmptyData.get_rules()) == 0

    def test_rules_are_cached_per_class(self):
        """Test get_rules() is built once per class."""
        assert AboutData.get_rules() is AboutData.get_rules()
        assert AboutData.get_rules() is not EmptyData.get_rules()

    def test_result_data(self):
        """Test message and debug carried into a provider result."""
        result = (
            ResultData.create({"domain": "example.com"})
            .set_message("Domain registered")
            .set_debug({"request_id": "r-1"})
            .to_provider_result()
        )

        assert result.is_ok()
        assert result.get_message() == "Domain registered"
        assert result.get_data() == {"domain": "example.com"}
        assert result.get_debug() == {"request_id": "r-1"}

    def test_result_data_defaults(self):
        """Test empty messages keep the default."""
        data = ResultData.create().set_message("")
        assert data.message == ResultData.DEFAULT_MESSAGE
        assert data.debug is None

    def test_result_data_set_data(self):
        """Test set_data() replaces all values."""
        data = ResultData.create({"a": 1}).set_data({"b": 2})
        assert data.get_data() == {"b": 2}

    def test_about_data(self):
        """Test about data rules."""
        about = AboutData.create({"name": "Domains", "description": "Domain names", "logo_url": "nope"})
        assert about.errors() == {"logo_url": ["The logo url must be a valid URL."]}

    def test_system_info(self):
        """Test outgoing IPs are validated per item."""
        assert SystemInfo.create({"outgoing_ips": ["192.0.2.1"]}).outgoing_ips == ["192.0.2.1"]
        assert SystemInfo.create({"outgoing_ips": ["nope"]}).errors() == {
            "outgoing_ips.0": ["The outgoing ips.0 must be a valid IP address."]
        }

    def test_storage_configuration(self):
        """Test both storage keys are required."""
        assert set(StorageConfiguration.create({}).errors()) == {"base_path", "secret_key"}

    def test_to_json(self):
        """Test JSON encoding of raw values."""
        assert NameServer.create({"host": "ns1.example.com"}).to_json() == '{"host": "ns1.example.com"}'
