"""Tests for YAML registry manifests."""

import textwrap

import pytest

from provision_sdk import Registry, RegistryError, RegistryState, load_manifest, register_manifest
from provision_sdk.registry import Manifest

MANIFEST = textwrap.dedent("""\
    categories:
      - identifier: domains
        class: sample_domains:DomainsCategory
        providers:
          - identifier: registrar-x
            class: sample_domains:RegistrarX
          - identifier: incomplete
            class: sample_domains.IncompleteRegistrar
      - identifier: hosting
        class: sample_domains:HostingCategory
""")


@pytest.fixture
def manifest_path(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text(MANIFEST)
    return path


class TestLoad:
    """Test reading manifests."""

    def test_load(self, manifest_path):
        """Test categories and providers are read in order."""
        manifest = load_manifest(manifest_path)

        assert [category.identifier for category in manifest.categories] == ["domains", "hosting"]
        assert [provider.identifier for provider in manifest.categories[0].providers] == ["registrar-x", "incomplete"]
        assert manifest.categories[1].providers == []

    def test_round_trip(self, manifest_path):
        """Test to_dict() matches the file contents."""
        manifest = load_manifest(manifest_path)
        assert Manifest.from_dict(manifest.to_dict()) == manifest

    def test_empty_file(self, tmp_path):
        """Test an empty manifest declares nothing."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_manifest(path).categories == []

    def test_invalid_yaml(self, tmp_path):
        """Test YAML syntax errors are registry errors."""
        path = tmp_path / "broken.yaml"
        path.write_text("categories: [unclosed")

        with pytest.raises(RegistryError, match="Invalid manifest"):
            load_manifest(path)

    @pytest.mark.parametrize("data,message", [
        (["domains"], "mapping with a list of categories"),
        ({"categories": "domains"}, "mapping with a list of categories"),
        ({"categories": ["domains"]}, "category entries must be mappings"),
        ({"categories": [{"identifier": "domains"}]}, "need string 'identifier' and 'class' keys"),
        ({"categories": [{"identifier": "domains", "class": "x:Y", "providers": "registrar-x"}]}, "providers must be a list"),
        (
            {"categories": [{"identifier": "domains", "class": "x:Y", "providers": [{"class": "x:Z"}]}]},
            "provider entries need",
        ),
    ])
    def test_invalid_structure(self, data, message):
        """Test malformed manifests are rejected."""
        with pytest.raises(RegistryError, match=message):
            Manifest.from_dict(data)


class TestRegister:
    """Test applying manifests to a registry."""

    def test_register_manifest(self, manifest_path):
        """Test each entry becomes a registration call."""
        registry = Registry()

        assert register_manifest(registry, load_manifest(manifest_path)) == 4
        assert registry.has_provider("domains", "incomplete")
        assert registry.has_category("hosting")

    def test_register_on_restored_registry(self, manifest_path):
        """Test manifest registrations are buffered on a restored registry."""
        registry = Registry()
        register_manifest(registry, load_manifest(manifest_path))
        restored = Registry.from_snapshot(registry.to_snapshot())

        register_manifest(restored, load_manifest(manifest_path))

        assert restored.state is RegistryState.RESTORED
        assert len(restored.get_buffer()) == 4
        assert restored.rebuild().to_dict() == registry.to_dict()
