"""Registry - the collection of registered categories and providers.

A Registry is an explicit context object assembled once at startup and
passed to whatever creates providers and jobs.

Lifecycle:
    EMPTY      Created, nothing registered
    POPULATED  Registration calls applied directly
    RESTORED   Loaded from a snapshot; registration calls are buffered
    REBUILT    Fresh registry produced by replaying a restored buffer

A restored registry is never mutated. Its buffered calls are replayed
against a new registry by rebuild(), which also happens implicitly before
a restored registry is snapshotted again.

Usage:
    >>> registry = Registry()
    >>> registry.register_category("domains", DomainsCategory)
    >>> registry.register_provider("domains", "registrar-x", RegistrarX)
    >>> snapshot = registry.to_snapshot()
    >>> restored = Registry.from_snapshot(snapshot)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from provision_sdk.registry.registers import CategoryRegister, ClassRegister, ProviderRegister
from provision_sdk.types.exceptions import RegistryError, RegistrySnapshotError
from provision_sdk.utils import class_path

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

CategoryReference = Union[CategoryRegister, type, str]
ProviderReference = Union[ProviderRegister, type, str]


class RegistryState(str, Enum):
    """Lifecycle state of a Registry."""

    EMPTY = "empty"
    POPULATED = "populated"
    RESTORED = "restored"
    REBUILT = "rebuilt"


@dataclass(frozen=True)
class BufferedRegister:
    """A registration call deferred because the registry was restored.

    Attributes:
        method: Name of the Registry method to call
        args: Positional arguments of the call
    """

    method: str
    args: tuple[Any, ...]

    def replay(self, registry: Registry) -> Optional[ClassRegister]:
        return getattr(registry, self.method)(*self.args)

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "args": [class_path(arg) if isinstance(arg, type) else arg for arg in self.args],
        }


class Registry:
    """Ordered collection of category registers."""

    def __init__(self, state: RegistryState = RegistryState.EMPTY):
        self._categories: list[CategoryRegister] = []
        self._buffer: list[BufferedRegister] = []
        self._state = RegistryState(state)
        self._enumerated = False

    @property
    def state(self) -> RegistryState:
        return self._state

    def was_cached(self) -> bool:
        """Whether this registry was restored from a snapshot."""
        return self._state is RegistryState.RESTORED

    # =========================================================================
    # Registration
    # =========================================================================

    def register_category(self, identifier: str, cls: Union[type, str]) -> Optional[CategoryRegister]:
        """Register a category class.

        Returns:
            The new CategoryRegister, or None if the call was buffered

        Raises:
            RegistryError: If the identifier or class is invalid or taken
        """
        if self.was_cached():
            self._buffer.append(BufferedRegister("register_category", (identifier, cls)))
            return None

        if self.has_category(identifier) or (isinstance(cls, type) and self.has_category(cls)):
            raise RegistryError.for_duplicate_category(identifier)

        register = CategoryRegister(identifier, cls)
        if self.has_category(register.cls):
            raise RegistryError.for_duplicate_category(identifier)

        self._categories.append(register)
        self._touch()

        logger.debug(f"Registered category {identifier} ({register.class_path})")
        return register

    def register_provider(
        self,
        category: CategoryReference,
        identifier: str,
        cls: Union[type, str],
    ) -> Optional[ProviderRegister]:
        """Register a provider class under a registered category.

        Returns:
            The new ProviderRegister, or None if the call was buffered

        Raises:
            RegistryError: If the category is unknown, or the identifier or
                class is invalid or taken
        """
        if self.was_cached():
            if isinstance(category, CategoryRegister):
                category = category.identifier
            self._buffer.append(BufferedRegister("register_provider", (category, identifier, cls)))
            return None

        category_register = self.get_category(category)
        if category_register is None:
            raise RegistryError.for_unknown_category(category)

        if category_register.has_provider(identifier):
            raise RegistryError.for_duplicate_provider(category_register.identifier, identifier)

        register = category_register.add_provider(identifier, cls)
        self._touch()

        logger.debug(
            f"Registered provider {category_register.identifier}/{identifier} ({register.class_path})"
        )
        return register

    def get_buffer(self) -> list[BufferedRegister]:
        return list(self._buffer)

    def rebuild(self) -> Registry:
        """Replay the buffered registration calls against a new registry.

        Returns:
            A REBUILT registry; this registry is left untouched

        Raises:
            RegistryError: If this registry was not restored from a snapshot
        """
        if self._state is not RegistryState.RESTORED:
            raise RegistryError(f"Only a restored registry can be rebuilt, this one is {self._state.value}")

        registry = Registry(RegistryState.REBUILT)
        for buffered in self._buffer:
            buffered.replay(registry)

        logger.debug(f"Rebuilt registry from {len(self._buffer)} buffered registration(s)")
        return registry

    def _touch(self) -> None:
        if self._state is RegistryState.EMPTY:
            self._state = RegistryState.POPULATED
        self._enumerated = False

    # =========================================================================
    # Lookup
    # =========================================================================

    def get_category(self, category: CategoryReference) -> Optional[CategoryRegister]:
        for register in self._categories:
            if register.is_(category):
                return register
        return None

    def has_category(self, category: CategoryReference) -> bool:
        return self.get_category(category) is not None

    def get_provider(self, category: CategoryReference, provider: ProviderReference) -> Optional[ProviderRegister]:
        category_register = self.get_category(category)
        if category_register is None:
            return None
        return category_register.get_provider(provider)

    def has_provider(self, category: CategoryReference, provider: ProviderReference) -> bool:
        return self.get_provider(category, provider) is not None

    def get_categories(self) -> list[CategoryRegister]:
        """Get all category registers, enumerating their data first."""
        self.enumerate_data()
        return list(self._categories)

    def enumerate_data(self) -> None:
        """Build and validate the data of every register, once."""
        if self._enumerated:
            return

        for category in self._categories:
            category.enumerate_data()

        self._enumerated = True

    def warnings(self) -> dict[str, list[str]]:
        """Enumeration warnings keyed by ``category`` or ``category/provider``."""
        warnings: dict[str, list[str]] = {}

        for category in self.get_categories():
            if category.warnings:
                warnings[category.identifier] = list(category.warnings)
            for provider in category.providers:
                if provider.warnings:
                    warnings[f"{category.identifier}/{provider.identifier}"] = list(provider.warnings)

        return warnings

    # =========================================================================
    # Snapshots
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "categories": [category.to_dict() for category in self.get_categories()],
        }

    def to_snapshot(self) -> str:
        """Serialize the category tree for a later from_snapshot().

        A restored registry is rebuilt from its buffer first, so the
        snapshot reflects this process's registration calls.
        """
        registry = self.rebuild() if self.was_cached() else self
        return json.dumps(registry.to_dict())

    @classmethod
    def from_snapshot(cls, payload: Union[str, bytes, dict[str, Any]]) -> Registry:
        """Restore a registry from a snapshot.

        Raises:
            RegistrySnapshotError: If the snapshot is corrupt or references
                classes which no longer exist
        """
        try:
            data = payload if isinstance(payload, dict) else json.loads(payload)
        except (TypeError, ValueError) as e:
            raise RegistrySnapshotError(f"not valid JSON ({e})") from e

        if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
            raise RegistrySnapshotError("missing category list")

        if data.get("version") != SNAPSHOT_VERSION:
            raise RegistrySnapshotError(f"unsupported version {data.get('version')!r}")

        registry = cls(RegistryState.RESTORED)
        try:
            for category in data["categories"]:
                registry._categories.append(CategoryRegister.from_dict(category))
        except RegistryError as e:
            raise RegistrySnapshotError(str(e)) from e
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise RegistrySnapshotError(f"malformed register ({type(e).__name__}: {e})") from e

        registry._enumerated = False
        return registry

    # =========================================================================
    # Display
    # =========================================================================

    def summary(self) -> str:
        """Return human-readable summary."""
        lines = [f"Provision Registry ({self._state.value}):", "=" * 40]

        for category in self.get_categories():
            lines.append(f"  {category.identifier}: {category.get_about().name} ({category.class_path})")
            for function in category.functions:
                lines.append(
                    f"    {function.name}({function.parameter.data_set_class.__name__})"
                    f" -> {function.return_.data_set_class.__name__}"
                )
            for provider in category.providers:
                status = "!" if provider.warnings else "+"
                lines.append(f"    {status} {provider.identifier}: {provider.get_about().name}")

        if self._buffer:
            lines.append(f"  ({len(self._buffer)} buffered registration(s) pending rebuild)")

        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._categories)

    def __repr__(self) -> str:
        return f"Registry(state={self._state.value!r}, categories={len(self._categories)})"
