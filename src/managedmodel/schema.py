"""
Schema model for managed contract types.

A ModelSchema is extracted once per ModelType and is immutable afterwards.
It holds the ordered, name-unique ModelProperty descriptors of the type,
each classified by how its value is managed.

Design Philosophy: Correct by Construction
- Frozen dataclasses throughout
- Writability and setter presence cannot disagree
- Duplicate property names are rejected when the schema is built
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from managedmodel.errors import DuplicatePropertyError
from managedmodel.model_type import ModelType


class StateManagementType(Enum):
    """How the value of a property is stored."""
    MANAGED = "managed"        # backed by the element state object
    UNMANAGED = "unmanaged"    # provided by the contract itself or left to the caller
    DELEGATED = "delegated"    # forwarded to the attached delegate instance


class ModelSchemaKind(Enum):
    VALUE = "value"
    COLLECTION = "collection"
    STRUCT = "struct"
    UNMANAGED = "unmanaged"


@dataclass(frozen=True)
class PropertyAccessor:
    """Reference to an accessor function and the type that declares it."""
    declaring_type: type
    function: Callable
    is_abstract: bool = False

    @property
    def name(self) -> str:
        return self.function.__name__

    @property
    def annotations(self) -> Dict[str, Any]:
        return dict(getattr(self.function, '__annotations__', {}))

    def __repr__(self) -> str:
        return f"PropertyAccessor({self.declaring_type.__qualname__}.{self.name})"


@dataclass(frozen=True)
class ModelProperty:
    """A single property of a schema."""
    name: str
    type: ModelType
    state_management_type: StateManagementType
    writable: bool
    getter: PropertyAccessor
    setter: Optional[PropertyAccessor] = None

    def __post_init__(self):
        if self.writable and self.setter is None:
            raise ValueError(f"Writable property '{self.name}' requires a setter")
        if not self.writable and self.setter is not None:
            raise ValueError(f"Read-only property '{self.name}' cannot have a setter")

    @property
    def declaring_type(self) -> type:
        return self.getter.declaring_type

    @property
    def is_managed(self) -> bool:
        return self.state_management_type is StateManagementType.MANAGED

    @property
    def is_delegated(self) -> bool:
        return self.state_management_type is StateManagementType.DELEGATED

    def __repr__(self) -> str:
        access = "rw" if self.writable else "r"
        return (f"ModelProperty({self.name}: {self.type.display_name}, "
                f"{self.state_management_type.name}, {access})")


@dataclass(frozen=True)
class ModelPropertyExtractionResult:
    """A property together with the accessors it was derived from.

    Consumed by the proxy generator; schemas only expose the properties.
    """
    property: ModelProperty
    getter: PropertyAccessor
    setter: Optional[PropertyAccessor] = None

    @property
    def name(self) -> str:
        return self.property.name


@dataclass(frozen=True)
class ModelSchema:
    """The extracted, classified property set of a ModelType."""
    type: ModelType
    kind: ModelSchemaKind
    properties: Tuple[ModelProperty, ...] = ()
    _by_name: Dict[str, ModelProperty] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        ordered = tuple(sorted(self.properties, key=lambda p: p.name))
        by_name: Dict[str, ModelProperty] = {}
        for prop in ordered:
            if prop.name in by_name:
                raise DuplicatePropertyError(self.type, prop.name)
            by_name[prop.name] = prop
        object.__setattr__(self, 'properties', ordered)
        object.__setattr__(self, '_by_name', by_name)

    def get_property(self, name: str) -> Optional[ModelProperty]:
        return self._by_name.get(name)

    def has_property(self, name: str) -> bool:
        return name in self._by_name

    @property
    def property_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.properties)

    def properties_of(self, state_management_type: StateManagementType) -> Tuple[ModelProperty, ...]:
        return tuple(p for p in self.properties if p.state_management_type is state_management_type)

    def __iter__(self) -> Iterator[ModelProperty]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def __repr__(self) -> str:
        return f"ModelSchema({self.type.display_name}, {self.kind.name}, {list(self.property_names)})"
