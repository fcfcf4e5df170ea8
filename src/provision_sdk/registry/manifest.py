"""Registry manifests - declare categories and providers in YAML.

Example manifest:

    categories:
      - identifier: domains
        class: my_app.domains:DomainsCategory
        providers:
          - identifier: registrar-x
            class: my_app.domains.registrar_x:RegistrarX

Registering a manifest on a restored registry buffers the calls like any
other registration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

from provision_sdk.registry.registry import Registry
from provision_sdk.types.exceptions import RegistryError


@dataclass
class ProviderEntry:
    """A provider declared in a manifest."""

    identifier: str
    cls: str

    @classmethod
    def from_dict(cls, data: Any) -> ProviderEntry:
        return cls(**_entry_fields(data, "provider"))


@dataclass
class CategoryEntry:
    """A category and its providers declared in a manifest."""

    identifier: str
    cls: str
    providers: list[ProviderEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> CategoryEntry:
        fields = _entry_fields(data, "category")

        providers = data.get("providers") or []
        if not isinstance(providers, list):
            raise RegistryError("Manifest category providers must be a list")

        return cls(**fields, providers=[ProviderEntry.from_dict(provider) for provider in providers])


@dataclass
class Manifest:
    """Parsed registry manifest."""

    categories: list[CategoryEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Manifest:
        if data is None:
            return cls()
        if not isinstance(data, dict) or not isinstance(data.get("categories", []), list):
            raise RegistryError("Manifest must be a mapping with a list of categories")

        return cls(categories=[CategoryEntry.from_dict(category) for category in data.get("categories", [])])

    def to_dict(self) -> dict[str, Any]:
        return {
            "categories": [
                {
                    "identifier": category.identifier,
                    "class": category.cls,
                    "providers": [
                        {"identifier": provider.identifier, "class": provider.cls}
                        for provider in category.providers
                    ],
                }
                for category in self.categories
            ]
        }


def load_manifest(path: Union[str, Path]) -> Manifest:
    """Load a manifest from a YAML file.

    Raises:
        RegistryError: If the file is not valid YAML or not a manifest
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise RegistryError(f"Invalid manifest {path}: {e}") from e

    return Manifest.from_dict(data)


def register_manifest(registry: Registry, manifest: Manifest) -> int:
    """Issue the registration calls a manifest declares.

    Returns:
        Number of registration calls made
    """
    calls = 0
    for category in manifest.categories:
        registry.register_category(category.identifier, category.cls)
        calls += 1

        for provider in category.providers:
            registry.register_provider(category.identifier, provider.identifier, provider.cls)
            calls += 1

    return calls


def _entry_fields(data: Any, kind: str) -> dict[str, str]:
    if not isinstance(data, dict):
        raise RegistryError(f"Manifest {kind} entries must be mappings")

    identifier, class_name = data.get("identifier"), data.get("class")
    if not isinstance(identifier, str) or not isinstance(class_name, str):
        raise RegistryError(f"Manifest {kind} entries need string 'identifier' and 'class' keys")

    return {"identifier": identifier, "cls": class_name}
