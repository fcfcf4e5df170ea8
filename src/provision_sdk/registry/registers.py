"""Registers - static descriptions of categories, providers and functions.

A CategoryRegister owns ProviderRegisters and the FunctionRegisters built
from its category's ``FUNCTIONS`` table. Each FunctionRegister holds one
DataSetRegister for its parameters and one for its return data.

Registers check their consistency on construction and raise RegistryError
for any defect. Problems which only show up when the category tree is
enumerated (unresolvable data set types, providers missing a function)
are recorded as warnings instead.

Serialization:
    to_dict() produces the snapshot shape read back by from_dict(). Classes
    are stored as ``module:QualName`` paths.
"""

from __future__ import annotations

import inspect
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional, Union

from provision_sdk.dataset import AboutData, DataSet, EmptyData, ResultData, Rules
from provision_sdk.provider.base import BaseCategory, BaseProvider
from provision_sdk.types.exceptions import RegistryError
from provision_sdk.utils import class_path, resolve_class

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = r"^[a-z0-9]+[a-z0-9\-]*[a-z0-9]+$"

CONSTRUCTOR = "__init__"

RegisterReference = Union["ClassRegister", type, str]


class DataSetType(str, Enum):
    """Role of a data set within a function."""

    PARAMETER = "parameter"
    RETURN = "return"


# =============================================================================
# Class Registers
# =============================================================================


class ClassRegister(ABC):
    """Base register of a category or provider class.

    Attributes:
        identifier: Stable external name, e.g. ``registrar-x``
        cls: The registered class
        warnings: Problems found while enumerating this register
    """

    def __init__(self, identifier: str, cls: Union[type, str], parent: Optional[ClassRegister] = None):
        self.identifier = identifier
        self._check_register()

        self.cls = self._resolve(cls)
        self.warnings: list[str] = []

        self._parent: Optional[ClassRegister] = None
        self._children: list[ClassRegister] = []
        self._about: Optional[AboutData] = None

        self.check_class()

        if parent is not None:
            self.set_parent(parent)

    @property
    def class_path(self) -> str:
        return class_path(self.cls)

    @property
    def parent(self) -> Optional[ClassRegister]:
        return self._parent

    @property
    def children(self) -> list[ClassRegister]:
        return list(self._children)

    # =========================================================================
    # Tree
    # =========================================================================

    def set_parent(self, parent: ClassRegister) -> None:
        if not self.has_parent(parent):
            self._check_parent(parent)
            self._parent = parent

        if not parent.has_child(self):
            parent.add_child(self)

    def has_parent(self, parent: Optional[ClassRegister] = None) -> bool:
        return self._parent is not None and (parent is None or self._parent is parent)

    def get_child(self, child: RegisterReference) -> Optional[ClassRegister]:
        for register in self._children:
            if register.is_(child):
                return register
        return None

    def has_child(self, child: RegisterReference) -> bool:
        return self.get_child(child) is not None

    def add_child(self, child: ClassRegister) -> None:
        self._check_child(child)
        self._children.append(child)

        if not child.has_parent(self):
            child.set_parent(self)

    def is_(self, register: RegisterReference) -> bool:
        """Whether the given register, class, identifier or class path is this register."""
        if isinstance(register, str):
            return register in (self.identifier, self.class_path)
        if isinstance(register, type):
            return register is self.cls
        return register is self

    # =========================================================================
    # Data
    # =========================================================================

    @abstractmethod
    def get_about(self) -> AboutData:
        """Get the about data of the registered class."""

    @abstractmethod
    def enumerate_data(self) -> None:
        """Build and validate everything derived from the registered class."""

    @abstractmethod
    def check_class(self) -> None:
        """Check the registered class is of the right kind."""

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Convert to the snapshot shape."""

    def warn(self, message: str) -> None:
        """Record a warning once and log it."""
        if message in self.warnings:
            return
        logger.warning(message)
        self.warnings.append(message)

    def _about_dict(self) -> dict[str, Any]:
        return self.get_about().copy(auto_validation=False).to_dict()

    # =========================================================================
    # Checks
    # =========================================================================

    def _check_register(self) -> None:
        if not isinstance(self.identifier, str) or not re.fullmatch(IDENTIFIER_PATTERN, self.identifier):
            raise RegistryError.for_invalid_identifier(self.identifier, IDENTIFIER_PATTERN)

    def _check_parent(self, parent: ClassRegister) -> None:
        if type(parent) is type(self):
            raise RegistryError(
                f"{type(self).__name__} {self.identifier} must not have a parent register of the same type"
            )

        if parent.has_parent():
            raise RegistryError(
                f"{type(self).__name__} {self.identifier} parent {type(parent).__name__} "
                f"{parent.identifier} must not also have a parent"
            )

        if not issubclass(self.cls, parent.cls):
            raise RegistryError.for_invalid_class(self.class_path, f"must be a subclass of {parent.class_path}")

    def _check_child(self, child: ClassRegister) -> None:
        if not issubclass(child.cls, self.cls):
            raise RegistryError.for_invalid_class(child.class_path, f"must be a subclass of {self.class_path}")

        for reference in (child, child.identifier, child.cls):
            if self.has_child(reference):
                raise RegistryError(
                    f"{type(self).__name__} {self.identifier} already has a child "
                    f"{type(child).__name__} {child.identifier}"
                )

    def _resolve(self, cls: Union[type, str]) -> type:
        if isinstance(cls, type):
            return cls
        if not isinstance(cls, str):
            raise RegistryError.for_invalid_class(repr(cls), "not a class or class path")
        try:
            return resolve_class(cls)
        except (ImportError, AttributeError, TypeError) as e:
            raise RegistryError.for_invalid_class(cls, f"class not found ({e})") from e

    # =========================================================================
    # Comparison
    # =========================================================================

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassRegister):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.identifier, self.class_path))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r}, {self.class_path!r})"


class CategoryRegister(ClassRegister):
    """Register of a category class and its providers."""

    def __init__(self, identifier: str, cls: Union[type, str]):
        super().__init__(identifier, cls)
        self._functions: Optional[list[FunctionRegister]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CategoryRegister:
        """Restore a category register, its functions and providers from a snapshot."""
        register = cls(data["identifier"], data["class"])
        register._about = AboutData.create(data.get("about"), False)
        register._functions = [
            FunctionRegister.from_dict(function, register) for function in data.get("functions", [])
        ]
        register.warnings = list(data.get("warnings", []))

        for provider in data.get("providers", []):
            ProviderRegister.from_dict(provider, register)

        return register

    def check_class(self) -> None:
        if not issubclass(self.cls, BaseCategory):
            raise RegistryError.for_invalid_class(self.class_path, "must extend BaseCategory")
        if issubclass(self.cls, BaseProvider):
            raise RegistryError.for_invalid_class(self.class_path, "is a provider, not a category")

    def get_about(self) -> AboutData:
        if self._about is None:
            self._about = self.cls.about_category()
        return self._about

    def enumerate_data(self) -> None:
        """Validate about data, expand function rules and check providers."""
        self.get_about().validate_if_not_yet_validated()

        for function in self.functions:
            function.enumerate_data()

        for provider in self.providers:
            provider.enumerate_data()

    # =========================================================================
    # Functions
    # =========================================================================

    @property
    def functions(self) -> list[FunctionRegister]:
        if self._functions is None:
            self._functions = [
                FunctionRegister(name, self, signature.parameter, signature.returns)
                for name, signature in self.cls.get_function_signatures().items()
            ]
        return list(self._functions)

    def get_function(self, function: Union[str, FunctionRegister]) -> Optional[FunctionRegister]:
        for register in self.functions:
            if register.is_(function):
                return register
        return None

    def has_function(self, function: Union[str, FunctionRegister]) -> bool:
        return self.get_function(function) is not None

    # =========================================================================
    # Providers
    # =========================================================================

    @property
    def providers(self) -> list[ProviderRegister]:
        return [child for child in self._children if isinstance(child, ProviderRegister)]

    def get_provider(self, provider: RegisterReference) -> Optional[ProviderRegister]:
        register = self.get_child(provider)
        return register if isinstance(register, ProviderRegister) else None

    def has_provider(self, provider: RegisterReference) -> bool:
        return self.get_provider(provider) is not None

    def add_provider(self, identifier: str, cls: Union[type, str]) -> ProviderRegister:
        return ProviderRegister(identifier, cls, self)

    def _check_parent(self, parent: ClassRegister) -> None:
        raise RegistryError(f"CategoryRegister {self.identifier} cannot have a parent register")

    def _check_child(self, child: ClassRegister) -> None:
        if not isinstance(child, ProviderRegister):
            raise RegistryError(f"CategoryRegister {self.identifier} children must be of type ProviderRegister")
        super()._check_child(child)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "class": self.class_path,
            "about": self._about_dict(),
            "functions": [function.to_dict() for function in self.functions],
            "providers": [provider.to_dict() for provider in self.providers],
            "warnings": list(self.warnings),
        }


class ProviderRegister(ClassRegister):
    """Register of a provider class within its category."""

    def __init__(self, identifier: str, cls: Union[type, str], category: CategoryRegister):
        self._constructor: Optional[FunctionRegister] = None
        super().__init__(identifier, cls, category)

    @classmethod
    def from_dict(cls, data: dict[str, Any], category: CategoryRegister) -> ProviderRegister:
        register = cls(data["identifier"], data["class"], category)
        register._about = AboutData.create(data.get("about"), False)
        if data.get("constructor"):
            register._constructor = FunctionRegister.from_dict(data["constructor"], register)
        register.warnings = list(data.get("warnings", []))
        return register

    @property
    def category(self) -> CategoryRegister:
        return self._parent

    def check_class(self) -> None:
        if not issubclass(self.cls, BaseProvider):
            raise RegistryError.for_invalid_class(self.class_path, "must extend BaseProvider")
        if inspect.isabstract(self.cls):
            missing = ", ".join(sorted(getattr(self.cls, "__abstractmethods__", ())))
            raise RegistryError.for_invalid_class(self.class_path, f"must be instantiable (abstract: {missing})")

    def get_about(self) -> AboutData:
        if self._about is None:
            self._about = self.cls.about_provider()
        return self._about

    @property
    def constructor(self) -> FunctionRegister:
        """The constructor function, taking the provider's configuration."""
        if self._constructor is None:
            self._constructor = FunctionRegister(
                CONSTRUCTOR, self, getattr(self.cls, "CONFIGURATION", None), None
            )
        return self._constructor

    def enumerate_data(self) -> None:
        """Validate about data, expand configuration rules and check functions."""
        self.get_about().validate_if_not_yet_validated()
        self.constructor.enumerate_data()

        for function in self.missing_functions():
            self.warn(
                f"ProviderRegister {self.category.identifier}/{self.identifier} "
                f"does not implement function {function.name}()"
            )

    def missing_functions(self) -> list[FunctionRegister]:
        """Category functions this provider class does not implement."""
        missing = []
        for function in self.functions:
            implementation = getattr(self.cls, function.name, None)
            if not callable(implementation) or getattr(implementation, "__isabstractmethod__", False):
                missing.append(function)
        return missing

    @property
    def functions(self) -> list[FunctionRegister]:
        return self.category.functions

    def get_function(self, function: Union[str, FunctionRegister]) -> Optional[FunctionRegister]:
        return self.category.get_function(function)

    def has_function(self, function: Union[str, FunctionRegister]) -> bool:
        return self.category.has_function(function)

    def _check_parent(self, parent: ClassRegister) -> None:
        if not isinstance(parent, CategoryRegister):
            raise RegistryError(f"ProviderRegister {self.identifier} parent must be of type CategoryRegister")
        super()._check_parent(parent)

    def _check_child(self, child: ClassRegister) -> None:
        raise RegistryError(f"ProviderRegister {self.identifier} cannot have child registers")

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "class": self.class_path,
            "about": self._about_dict(),
            "constructor": self.constructor.to_dict(),
            "warnings": list(self.warnings),
        }


# =============================================================================
# Function and Data Set Registers
# =============================================================================


class FunctionRegister:
    """A provision function (or provider constructor) and its data set types.

    Attributes:
        name: Function name
        parent: Category register, or provider register for the constructor
        parameter: Register of the parameter data set
        return_: Register of the return data set
    """

    def __init__(
        self,
        name: str,
        parent: ClassRegister,
        parameter: Any = None,
        returns: Any = None,
    ):
        self.name = name
        self.parent = parent
        self.parameter = DataSetRegister(DataSetType.PARAMETER, parameter, self)
        self.return_ = DataSetRegister(DataSetType.RETURN, returns, self)

    @classmethod
    def from_dict(cls, data: dict[str, Any], parent: ClassRegister) -> FunctionRegister:
        return cls(data["name"], parent, data.get("parameter"), data.get("return"))

    def is_(self, function: Union[str, FunctionRegister]) -> bool:
        if isinstance(function, str):
            return function == self.name
        return function is self

    def is_constructor(self) -> bool:
        return isinstance(self.parent, ProviderRegister) and self.name == CONSTRUCTOR

    def get_category(self) -> CategoryRegister:
        if isinstance(self.parent, ProviderRegister):
            return self.parent.category
        return self.parent

    def enumerate_data(self) -> None:
        self.parameter.enumerate_data()
        self.return_.enumerate_data()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "parameter": self.parameter.class_path,
            "return": self.return_.class_path,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionRegister):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self) -> int:
        return hash((self.name, self.parameter.class_path, self.return_.class_path))

    def __repr__(self) -> str:
        return f"FunctionRegister({self.name!r})"


class DataSetRegister:
    """The data set class used for a function's parameters or return data.

    Declared types that cannot be resolved, or are not DataSet subclasses,
    are replaced by a default with a warning on the owning class register.
    """

    def __init__(self, data_set_type: DataSetType, reference: Any, function: FunctionRegister):
        self.type = DataSetType(data_set_type)
        self.function = function
        self.data_set_class: type[DataSet] = self._resolve(reference)

    @property
    def class_path(self) -> str:
        return class_path(self.data_set_class)

    @property
    def default_class(self) -> type[DataSet]:
        if self.type is DataSetType.RETURN and not self.function.is_constructor():
            return ResultData
        return EmptyData

    def get_rules(self) -> Rules:
        return self.data_set_class.get_rules()

    def enumerate_data(self) -> None:
        """Pre-expand the data set's rules."""
        self.get_rules().expand()

    def _resolve(self, reference: Any) -> type[DataSet]:
        if reference is None:
            return self.default_class

        if isinstance(reference, str):
            try:
                reference = resolve_class(reference)
            except (ImportError, AttributeError, TypeError):
                self._warn(f"{reference} class not found")
                return self.default_class

        if not isinstance(reference, type) or not issubclass(reference, DataSet):
            self._warn(f"{getattr(reference, '__qualname__', reference)} must be a subclass of DataSet")
            return self.default_class

        return reference

    def _warn(self, problem: str) -> None:
        self.function.parent.warn(
            f"{type(self.function.parent).__name__} {self.function.parent.identifier} function "
            f"{self.function.name}() {self.type.value} type {problem}"
        )

    def __repr__(self) -> str:
        return f"DataSetRegister({self.type.value!r}, {self.class_path!r})"
