"""Tests for the registry, its registers and snapshots."""

import json

import pytest

from provision_sdk import (
    EmptyData,
    Registry,
    RegistryError,
    RegistrySnapshotError,
    RegistryState,
    ResultData,
)
from provision_sdk.dataset.examples import RegisterParameterSet
from provision_sdk.registry import CategoryRegister, DataSetType

import sample_domains
from sample_domains import DomainsCategory, IncompleteRegistrar, RegistrarX, RegistrarXConfiguration


class TestRegistration:
    """Test registering categories and providers."""

    def test_register(self, registry):
        """Test registered classes can be looked up every way."""
        category = registry.get_category("domains")

        assert registry.has_category(DomainsCategory)
        assert registry.get_category("sample_domains:DomainsCategory") is category
        assert registry.get_provider("domains", "registrar-x").cls is RegistrarX
        assert registry.get_provider(category, RegistrarX).identifier == "registrar-x"
        assert registry.has_provider("domains", "incomplete")
        assert not registry.has_provider("domains", "registrar-y")
        assert registry.get_provider("hosting", "registrar-x") is None

    def test_register_by_class_path(self):
        """Test classes may be given as import paths."""
        registry = Registry()
        registry.register_category("domains", "sample_domains:DomainsCategory")
        provider = registry.register_provider("domains", "registrar-x", "sample_domains.RegistrarX")

        assert provider.cls is RegistrarX
        assert provider.category.cls is DomainsCategory

    @pytest.mark.parametrize("identifier", ["Domains", "d", "-domains", "domains-", "do mains", "domains\n", 5])
    def test_invalid_identifier(self, identifier):
        """Test identifiers are lowercase dash separated words."""
        with pytest.raises(RegistryError, match="Invalid identifier"):
            Registry().register_category(identifier, DomainsCategory)

    def test_unknown_class_path(self):
        """Test unresolvable classes are rejected."""
        with pytest.raises(RegistryError, match="class not found"):
            Registry().register_category("domains", "sample_domains:NoSuchCategory")

    def test_not_a_class(self):
        """Test non-class values are rejected."""
        with pytest.raises(RegistryError, match="not a class or class path"):
            Registry().register_category("domains", 5)

    def test_category_must_be_category(self):
        """Test category classes are checked."""
        with pytest.raises(RegistryError, match="must extend BaseCategory"):
            Registry().register_category("domains", RegisterParameterSet)
        with pytest.raises(RegistryError, match="is a provider, not a category"):
            Registry().register_category("domains", RegistrarX)

    def test_duplicate_category(self, registry):
        """Test identifiers and classes register once."""
        with pytest.raises(RegistryError, match="Category domains already registered"):
            registry.register_category("domains", sample_domains.HostingCategory)
        with pytest.raises(RegistryError, match="Category names already registered"):
            registry.register_category("names", DomainsCategory)

    def test_unknown_category(self, registry):
        """Test providers need a registered category."""
        with pytest.raises(RegistryError, match="Category hosting is not registered"):
            registry.register_provider("hosting", "host-a", sample_domains.HostingProvider)

    def test_duplicate_provider(self, registry):
        """Test provider identifiers and classes register once per category."""
        with pytest.raises(RegistryError, match="Provider registrar-x already registered for category domains"):
            registry.register_provider("domains", "registrar-x", IncompleteRegistrar)
        with pytest.raises(RegistryError, match="already has a child"):
            registry.register_provider("domains", "registrar-x2", RegistrarX)

    def test_provider_must_extend_category(self, registry):
        """Test providers implement the category they register under."""
        with pytest.raises(RegistryError, match="must be a subclass of sample_domains:DomainsCategory"):
            registry.register_provider("domains", "host-a", sample_domains.HostingProvider)

    def test_provider_must_be_instantiable(self, registry):
        """Test abstract providers are rejected."""
        with pytest.raises(RegistryError, match=r"must be instantiable \(abstract: about_provider\)"):
            registry.register_provider("domains", "unfinished", sample_domains.UnfinishedRegistrar)

    def test_provider_must_be_provider(self, registry):
        """Test provider classes are checked."""
        with pytest.raises(RegistryError, match="must extend BaseProvider"):
            registry.register_provider("domains", "plain", DomainsCategory)


class TestRegisters:
    """Test the data held by registers."""

    def test_functions(self, registry):
        """Test function registers follow the category's FUNCTIONS."""
        category = registry.get_category("domains")
        register = category.get_function("register")

        assert [function.name for function in category.functions] == ["register", "renew"]
        assert register.parameter.data_set_class is RegisterParameterSet
        assert register.return_.data_set_class is ResultData
        assert register.parameter.type is DataSetType.PARAMETER
        assert register.get_category() is category
        assert not register.is_constructor()

    def test_provider_functions_delegate_to_category(self, registry):
        """Test providers expose their category's functions."""
        provider = registry.get_provider("domains", "incomplete")
        assert provider.has_function("renew")
        assert provider.get_function("renew") is registry.get_category("domains").get_function("renew")

    def test_constructor(self, registry):
        """Test the constructor takes the provider configuration."""
        constructor = registry.get_provider("domains", "registrar-x").constructor

        assert constructor.is_constructor()
        assert constructor.parameter.data_set_class is RegistrarXConfiguration
        assert constructor.return_.data_set_class is EmptyData
        assert registry.get_provider("domains", "incomplete").constructor.parameter.data_set_class is EmptyData

    def test_about(self, registry):
        """Test about data comes from the registered classes."""
        assert registry.get_category("domains").get_about().name == "Domains"
        assert registry.get_provider("domains", "registrar-x").get_about().name == "Registrar X"

    def test_missing_function_warning(self, registry):
        """Test providers missing a category function are flagged."""
        assert registry.warnings() == {
            "domains/incomplete": ["ProviderRegister domains/incomplete does not implement function renew()"]
        }

    def test_warnings_not_repeated(self, registry):
        """Test enumerating twice records each warning once."""
        provider = registry.get_provider("domains", "incomplete")
        provider.enumerate_data()
        provider.enumerate_data()

        assert len(provider.warnings) == 1

    def test_unresolvable_data_set_types(self):
        """Test bad data set types fall back to defaults with warnings."""
        registry = Registry()
        category = registry.register_category("hosting", sample_domains.HostingCategory)
        registry.register_provider("hosting", "host-a", sample_domains.HostingProvider)

        create = category.get_function("create")

        assert create.parameter.data_set_class is EmptyData
        assert create.return_.data_set_class is ResultData
        assert registry.warnings() == {
            "hosting": [
                "CategoryRegister hosting function create() parameter type "
                "sample_domains:MissingParameterSet class not found",
                "CategoryRegister hosting function create() return type dict must be a subclass of DataSet",
            ]
        }

    def test_register_equality(self, registry):
        """Test registers compare by their snapshot shape."""
        restored = CategoryRegister.from_dict(registry.get_category("domains").to_dict())

        assert restored == registry.get_category("domains")
        assert hash(restored) == hash(registry.get_category("domains"))

    def test_provider_to_dict(self, registry):
        """Test the provider snapshot shape."""
        assert registry.get_provider("domains", "registrar-x").to_dict() == {
            "identifier": "registrar-x",
            "class": "sample_domains:RegistrarX",
            "about": {"name": "Registrar X", "description": "Sample registrar"},
            "constructor": {
                "name": "__init__",
                "parameter": "sample_domains:RegistrarXConfiguration",
                "return": "provision_sdk.dataset.common:EmptyData",
            },
            "warnings": [],
        }


class TestLifecycle:
    """Test registry states, buffering and rebuilding."""

    def test_states(self):
        """Test an empty registry becomes populated."""
        registry = Registry()
        assert registry.state is RegistryState.EMPTY

        registry.register_category("domains", DomainsCategory)
        assert registry.state is RegistryState.POPULATED
        assert not registry.was_cached()

    def test_restored_registry_buffers(self, registry):
        """Test registrations on a restored registry are deferred."""
        restored = Registry.from_snapshot(registry.to_snapshot())

        assert restored.state is RegistryState.RESTORED
        assert restored.was_cached()
        assert restored.register_category("domains", DomainsCategory) is None
        assert restored.register_provider(restored.get_category("domains"), "registrar-x", RegistrarX) is None

        assert len(restored) == 1
        assert [buffered.to_dict() for buffered in restored.get_buffer()] == [
            {"method": "register_category", "args": ["domains", "sample_domains:DomainsCategory"]},
            {"method": "register_provider", "args": ["domains", "registrar-x", "sample_domains:RegistrarX"]},
        ]

    def test_restored_registry_serves_lookups(self, registry):
        """Test restored registers resolve to the original classes."""
        restored = Registry.from_snapshot(registry.to_snapshot())

        provider = restored.get_provider("domains", "registrar-x")
        assert provider.cls is RegistrarX
        assert provider.constructor.parameter.data_set_class is RegistrarXConfiguration
        assert restored.get_category("domains").get_function("renew").return_.data_set_class.__name__ == "RenewResult"

    def test_rebuild(self, registry):
        """Test rebuilding replays the buffer into a new registry."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        restored.register_category("domains", DomainsCategory)
        restored.register_provider("domains", "registrar-x", RegistrarX)

        rebuilt = restored.rebuild()

        assert rebuilt is not restored
        assert rebuilt.state is RegistryState.REBUILT
        assert rebuilt.has_provider("domains", "registrar-x")
        assert not rebuilt.has_provider("domains", "incomplete")
        assert restored.has_provider("domains", "incomplete")

    def test_snapshot_of_restored_registry_uses_buffer(self, registry):
        """Test re-snapshotting reflects this process's registrations."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        restored.register_category("domains", DomainsCategory)

        snapshot = json.loads(restored.to_snapshot())

        assert [category["identifier"] for category in snapshot["categories"]] == ["domains"]
        assert snapshot["categories"][0]["providers"] == []

    def test_buffered_errors_surface_on_rebuild(self, registry):
        """Test invalid buffered calls raise when replayed."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        restored.register_provider("hosting", "host-a", sample_domains.HostingProvider)

        with pytest.raises(RegistryError, match="Category hosting is not registered"):
            restored.rebuild()

    @pytest.mark.parametrize("state", ["empty", "populated"])
    def test_rebuild_requires_restored_registry(self, registry, state):
        """Test only a restored registry can be rebuilt."""
        if state == "empty":
            registry = Registry()

        with pytest.raises(RegistryError, match=f"this one is {state}"):
            registry.rebuild()

        assert len(registry.get_categories()) == (0 if state == "empty" else 1)

    def test_rebuilt_registry_cannot_be_rebuilt(self, registry):
        """Test rebuilding is a one-way transition."""
        rebuilt = Registry.from_snapshot(registry.to_snapshot()).rebuild()

        with pytest.raises(RegistryError, match="this one is rebuilt"):
            rebuilt.rebuild()


class TestSnapshots:
    """Test snapshot serialization."""

    def test_round_trip(self, registry):
        """Test a restored registry matches the original."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        assert restored.to_dict() == registry.to_dict()

    def test_bytes_and_dict_payloads(self, registry):
        """Test snapshots may be given decoded or as bytes."""
        snapshot = registry.to_snapshot()

        assert len(Registry.from_snapshot(snapshot.encode("utf-8"))) == 1
        assert len(Registry.from_snapshot(json.loads(snapshot))) == 1

    def test_warnings_survive(self, registry):
        """Test enumeration warnings are part of the snapshot."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        assert restored.get_provider("domains", "incomplete").warnings == [
            "ProviderRegister domains/incomplete does not implement function renew()"
        ]

    @pytest.mark.parametrize("payload,reason", [
        ("not json", "not valid JSON"),
        ('["a"]', "missing category list"),
        ('{"version": 1}', "missing category list"),
        ('{"version": 2, "categories": []}', "unsupported version 2"),
        ('{"version": 1, "categories": [{"class": "sample_domains:DomainsCategory"}]}', "malformed register"),
        ('{"version": 1, "categories": [{"identifier": "domains", "class": "gone:Category"}]}', "class not found"),
    ])
    def test_invalid_snapshots(self, payload, reason):
        """Test corrupt snapshots raise RegistrySnapshotError."""
        with pytest.raises(RegistrySnapshotError, match=reason):
            Registry.from_snapshot(payload)

    def test_empty_registry_snapshot(self):
        """Test an empty registry round-trips."""
        restored = Registry.from_snapshot(Registry().to_snapshot())
        assert len(restored) == 0
        assert restored.state is RegistryState.RESTORED


class TestDisplay:
    """Test summary output."""

    def test_summary(self, registry):
        """Test the summary lists categories, functions and providers."""
        summary = registry.summary()

        assert summary.startswith("Provision Registry (populated):")
        assert "  domains: Domains (sample_domains:DomainsCategory)" in summary
        assert "    register(RegisterParameterSet) -> ResultData" in summary
        assert "    renew(RenewParameterSet) -> RenewResult" in summary
        assert "    + registrar-x: Registrar X" in summary
        assert "    ! incomplete: Incomplete" in summary

    def test_summary_mentions_buffer(self, registry):
        """Test pending buffered registrations are shown."""
        restored = Registry.from_snapshot(registry.to_snapshot())
        restored.register_category("domains", DomainsCategory)

        assert "(1 buffered registration(s) pending rebuild)" in restored.summary()

    def test_repr(self, registry):
        """Test repr shows state and size."""
        assert repr(registry) == "Registry(state='populated', categories=1)"
