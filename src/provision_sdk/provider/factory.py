"""Provider Factory - instantiate registered providers.

The factory looks a provider up in the registry, validates its
configuration and wires in the capabilities the provider asks for
(LogsDebugData, StoresFiles, HasSystemInfo) before handing back a
Provider ready to make jobs.

Usage:
    >>> factory = ProviderFactory(registry)
    >>> provider = factory.create("domains", "registrar-x", {"api_key": "..."})
    >>> result = provider.make_job("register", params).execute()
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from provision_sdk.dataset import DataSet, StorageConfiguration, SystemInfo
from provision_sdk.provider.base import BaseProvider, HasSystemInfo, LogsDebugData, StoresFiles
from provision_sdk.provider.job import ProviderJob
from provision_sdk.types.exceptions import (
    InvalidDataSetError,
    InvalidProviderConfigurationError,
    RegistryError,
)

if TYPE_CHECKING:
    from provision_sdk.config import ProvisionConfig
    from provision_sdk.registry.registers import ProviderRegister
    from provision_sdk.registry.registry import Registry

logger = logging.getLogger(__name__)

StorageFactory = Callable[[str, str], Any]


@dataclass
class StorageLocation:
    """Default storage handed to providers implementing StoresFiles.

    Attributes:
        path: Directory reserved for this provider
        secret_key: Key for encrypting stored files
    """

    path: str
    secret_key: str


class Provider:
    """A provider instance together with its register.

    Attributes:
        register: ProviderRegister describing the provider
        instance: The instantiated provider class
    """

    def __init__(self, register: ProviderRegister, instance: BaseProvider):
        if type(instance) is not register.cls:
            raise ValueError(
                f"Provider instance of {type(instance).__qualname__} does not match "
                f"register class {register.cls.__qualname__}"
            )

        self.register = register
        self.instance = instance

    def make_job(self, function: str, parameter_data: Any = None) -> ProviderJob:
        """Create a job for one of this provider's functions.

        Raises:
            InvalidProviderJob: If the function is not defined
        """
        return ProviderJob(self, function, parameter_data)

    def __repr__(self) -> str:
        return f"Provider(category={self.register.category.identifier!r}, provider={self.register.identifier!r})"


class ProviderFactory:
    """Create Provider instances from a registry."""

    def __init__(
        self,
        registry: Registry,
        storage_factory: Optional[StorageFactory] = None,
        system_info: Optional[SystemInfo] = None,
        provider_logger: Optional[logging.Logger] = None,
        storage_configuration: Optional[StorageConfiguration] = None,
    ):
        """Initialize factory.

        Args:
            registry: Registry to look providers up in
            storage_factory: Builds a storage object from (path, secret_key);
                defaults to StorageLocation
            system_info: System info for HasSystemInfo providers; detected
                from the host when not given
            provider_logger: Logger for LogsDebugData providers; defaults to a
                per-provider child of ``provision_sdk.provider``
            storage_configuration: Default storage configuration for
                StoresFiles providers
        """
        self.registry = registry
        self.storage_factory: StorageFactory = storage_factory or StorageLocation
        self._system_info = system_info
        self._provider_logger = provider_logger
        self._storage_configuration = storage_configuration

    @classmethod
    def from_config(cls, registry: Registry, config: ProvisionConfig, **kwargs: Any) -> ProviderFactory:
        """Create a factory using system info and storage from a ProvisionConfig."""
        kwargs.setdefault("storage_configuration", config.storage_configuration())
        if config.outgoing_ips and "system_info" not in kwargs:
            kwargs["system_info"] = SystemInfo.create({"outgoing_ips": list(config.outgoing_ips)})
        return cls(registry, **kwargs)

    def create(
        self,
        category: str,
        provider: str,
        configuration: Any = None,
        storage_configuration: Any = None,
    ) -> Provider:
        """Instantiate a registered provider.

        Args:
            category: Category identifier
            provider: Provider identifier
            configuration: Provider configuration data set or dict
            storage_configuration: StorageConfiguration or dict, required if
                the provider implements StoresFiles

        Returns:
            Provider wrapping the new instance

        Raises:
            RegistryError: If the category or provider is not registered
            InvalidProviderConfigurationError: If the configuration is invalid
            InvalidDataSetError: If the storage configuration is invalid
        """
        register = self.get_provider_register(category, provider)

        configuration = self._make_configuration(register, configuration)
        instance = register.cls(configuration)

        if isinstance(instance, LogsDebugData):
            instance.set_logger(self.get_logger(register))

        if isinstance(instance, StoresFiles):
            instance.set_storage(self.create_storage(register, storage_configuration))

        if isinstance(instance, HasSystemInfo):
            instance.set_system_info(self.get_system_info())

        logger.debug(f"Created provider {register.category.identifier}/{register.identifier}")
        return Provider(register, instance)

    def get_provider_register(self, category: str, provider: str) -> ProviderRegister:
        category_register = self.registry.get_category(category)
        if category_register is None:
            raise RegistryError.for_unknown_category(category)

        provider_register = category_register.get_provider(provider)
        if provider_register is None:
            raise RegistryError(f"Provider {provider} is not registered for category {category_register.identifier}")

        return provider_register

    def get_logger(self, register: ProviderRegister) -> logging.Logger:
        if self._provider_logger is not None:
            return self._provider_logger
        return logging.getLogger(f"provision_sdk.provider.{register.category.identifier}.{register.identifier}")

    def get_system_info(self) -> SystemInfo:
        if self._system_info is None:
            self._system_info = SystemInfo.create({"outgoing_ips": [_detect_outgoing_ip()]})
        return self._system_info

    def create_storage(self, register: ProviderRegister, storage_configuration: Any = None) -> Any:
        """Create the storage of a provider below the configured base path.

        Each provider gets its own ``<base_path>/<category>/<provider>`` path.
        """
        if storage_configuration is None:
            storage_configuration = self._storage_configuration
        if not isinstance(storage_configuration, StorageConfiguration):
            storage_configuration = StorageConfiguration.create(storage_configuration)
        storage_configuration.validate_if_not_yet_validated()

        path = "/".join([
            storage_configuration.base_path.rstrip("/"),
            register.category.identifier,
            register.identifier,
        ])
        return self.storage_factory(path, storage_configuration.secret_key)

    def _make_configuration(self, register: ProviderRegister, configuration: Any) -> DataSet:
        data_set_class = register.constructor.parameter.data_set_class

        if not isinstance(configuration, data_set_class):
            configuration = data_set_class.create(configuration)

        try:
            configuration.validate_if_not_yet_validated()
        except InvalidDataSetError as e:
            raise InvalidProviderConfigurationError.from_invalid_data_set(e)

        return configuration


def _detect_outgoing_ip() -> str:
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "127.0.0.1"
